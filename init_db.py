import argparse
import asyncio
import logging

from backend.app.db import init_models
from backend.app.security.jwt import create_client_token


async def main(drop_existing: bool, client_id: str = None) -> None:
    # Drop + recreate is for local development only
    await init_models(drop_existing=drop_existing)
    print(">>> Tables Created Successfully!")

    if client_id:
        print(f">>> Client token for {client_id}:")
        print(create_client_token(client_id))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the recovery service tables.")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first (dev only)")
    parser.add_argument("--client-id", help="also print a bearer token for this client id")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(args.drop, args.client_id))
