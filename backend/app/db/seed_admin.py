"""Create or promote an Admin account.

Self-registration never grants the Admin role, so the first administrator is
seeded from the command line:

    python -m app.db.seed_admin --email admin@quickmate.local --password '...'
"""

import asyncio

import click

from app.core.config import settings
from app.db.base import Database
from app.repositories.user import UserRepository
from app.services.auth_service import AuthService


async def seed_admin(database: Database, name: str, email: str, password: str):
    async with database.session() as session:
        user = await AuthService(UserRepository(session)).ensure_admin(name, email, password)
        await session.commit()
        return user


@click.command()
@click.option("--email", required=True, help="Admin login email")
@click.option("--password", required=True, help="Admin password (min 8 characters)")
@click.option("--name", default="Administrator", show_default=True)
@click.option("--database-url", default=None, help="Overrides DATABASE_URL")
@click.option("--create-tables", is_flag=True, help="Create missing tables first")
def main(email, password, name, database_url, create_tables):
    """Seed an Admin user."""
    if len(password) < 8:
        raise click.BadParameter("must be at least 8 characters", param_hint="--password")

    async def run():
        database = Database(database_url or settings.DATABASE_URL)
        try:
            if create_tables:
                await database.create_all()
            return await seed_admin(database, name, email, password)
        finally:
            await database.dispose()

    user = asyncio.run(run())
    click.echo(f"Admin ready: {user.email} ({user.id})")


if __name__ == "__main__":
    main()
