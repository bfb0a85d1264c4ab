import asyncio
import logging

from paygrid.clients.corridors import CorridorQuotesClient
from paygrid.schemas.config import SDKConfig
from paygrid.schemas.https import NetworkTokens
from paygrid.schemas.intents import RoutingPriority

logging.basicConfig(level=logging.INFO)

source_account = "0x1234567890123456789012345678901234567890"
destination_account = "0x9876543210987654321098765432109876543210"


async def main():
    async with CorridorQuotesClient(SDKConfig.from_env()) as quotes:
        routes = await quotes.get_payment_corridor_routes(
            100,  # $1.00
            source_account,
            destination_account,
            sources=NetworkTokens(networks=["POLYGON"], tokens=["USDC"]),
            destinations=NetworkTokens(networks=["OPTIMISM", "POLYGON", "BASE"], tokens=["USDC", "USDT"]),
            routing_priority=RoutingPriority.COST,
        )

        for index, quote in enumerate(routes.corridor_quotes, start=1):
            print(f"Route {index}: {quote.quote_id} via {quote.corridor_id}, fees {quote.estimated_total_fees}")

        if routes.best_quote is not None:
            effective = await quotes.get_effective_quote(routes.best_quote.quote_id, destination_account)
            print("Effective fees:", effective.best_quote.estimated_total_fees)


if __name__ == "__main__":
    asyncio.run(main())
