import asyncio
import logging
import os
import time

import dotenv

from paygrid.adapters.evm.signers import LocalAccountSigner
from paygrid.clients.paygrid import Paygrid
from paygrid.schemas.config import SDKConfig
from paygrid.schemas.intents import (
    ChargeBearer,
    DestinationDomain,
    OperatorData,
    PaymentIntent,
    PaymentType,
    ProcessingFees,
    RoutingPriority,
    SourceDomain,
)

dotenv.load_dotenv()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

operator = "0x0AB796b0Db4333EF2fFaC835a1e05C75E0c119D4"
payee = "0xF34c65196F4fC4E3dE7133eec7C13859e741875C"


async def main():
    private_key = os.getenv("TEST_PRIVATE_KEY")
    if not private_key:
        raise SystemExit("TEST_PRIVATE_KEY is not set")
    signer = LocalAccountSigner(private_key)

    intent = PaymentIntent(
        payment_type=PaymentType.ONE_TIME,
        routing_priority=RoutingPriority.COST,
        operator_data=OperatorData(
            operator=operator,
            treasury=operator,
            fee_bps=10,
            authorized_delegates=[payee],
            webhook_url="https://grid.network/well-known/operators/1",
        ),
        amount=120,  # $1.20
        source=SourceDomain(from_account=signer.address, network_id="BASE", payment_token="USDC"),
        destination=DestinationDomain(to_account=payee, network_id="POLYGON", payment_token="USDC"),
        expiration_date=int(time.time()) + 3600,
        processing_fees=ProcessingFees(charge_bearer=ChargeBearer.PAYEE),
        payment_reference="order-1001",
        metadata={"description": "Quickstart payment"},
    )

    async with Paygrid(SDKConfig.from_env()) as paygrid:
        created = await paygrid.sign_and_initiate_payment_intent(intent, signer)
        print("Payment intent:", created.id, created.status.value)

        final = await paygrid.poll_payment_intent_status(created.id, poll_interval=3, timeout=300)
        print("Final status:", final.status.value)
        if final.transaction is not None:
            print("Source TX:", final.transaction.src_tx_hash)


if __name__ == "__main__":
    asyncio.run(main())
