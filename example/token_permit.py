import asyncio
import logging
import os
import time

import dotenv

from paygrid.adapters.evm.permits import is_permit_supported
from paygrid.adapters.evm.signers import LocalAccountSigner
from paygrid.clients.paygrid import Paygrid
from paygrid.schemas.config import SDKConfig

dotenv.load_dotenv()
logging.basicConfig(level=logging.INFO)


async def main():
    signer = LocalAccountSigner(os.environ["TEST_PRIVATE_KEY"])
    if not is_permit_supported("USDC", "BASE"):
        raise SystemExit("USDC on BASE needs an on-chain approve")

    config = SDKConfig.from_env(custom_rpc_urls={"BASE": os.getenv("BASE_RPC_URL", "https://mainnet.base.org")})
    async with Paygrid(config) as paygrid:
        # Grants Permit2 an unlimited USDC allowance without an approve transaction
        permit = await paygrid.generate_token_permit(
            "USDC", "BASE", signer.address, signer, deadline=int(time.time()) + 3600
        )
        print("Initial permit:", permit.model_dump())


if __name__ == "__main__":
    asyncio.run(main())
