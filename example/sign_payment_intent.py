import asyncio
import json
import logging
import os
import time

import dotenv

from paygrid.adapters.evm.signatures import build_payment_authorization_payload, sign_payment_intent
from paygrid.adapters.evm.signers import LocalAccountSigner
from paygrid.schemas.intents import PaymentIntent

dotenv.load_dotenv()
logging.basicConfig(level=logging.DEBUG)

operator = "0x0AB796b0Db4333EF2fFaC835a1e05C75E0c119D4"
payee = "0xF34c65196F4fC4E3dE7133eec7C13859e741875C"


async def main():
    signer = LocalAccountSigner(os.environ["TEST_PRIVATE_KEY"])

    intent = PaymentIntent.model_validate({
        "payment_type": "one-time",
        "operator_data": {"operator": operator, "treasury": operator, "fee_bps": 30},
        "amount": 2500,  # $25.00
        "source": {"from_account": signer.address, "network_id": "BASE", "payment_token": "USDC"},
        "destination": {"to_account": payee, "network_id": "OPTIMISM", "payment_token": "USDC"},
        "expiration_date": int(time.time()) + 3600,
    })

    # Typed data for an external wallet (eth_signTypedData_v4)
    payload = await build_payment_authorization_payload(intent)
    print(json.dumps(payload.to_dict(), indent=2))

    authorizations = await sign_payment_intent(intent, signer)
    print("Permit2 signature:", authorizations.permit2_permit.signature)
    print("Nonce:", authorizations.permit2_permit.nonce)


if __name__ == "__main__":
    asyncio.run(main())
