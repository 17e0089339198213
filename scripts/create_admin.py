"""
Create an admin account, or promote an existing one.

Usage: python scripts/create_admin.py admin@example.com [--name "Jane Doe"]
"""

import argparse

from tortoise import run_async

from secops.db import init_db
from secops.models.user import Role, User
from secops.services.otp import normalize_email


async def main(email: str, name: str | None) -> None:
    await init_db()
    user, created = await User.get_or_create(
        email=normalize_email(email),
        defaults={"name": name, "role": Role.ADMIN},
    )
    if not created and user.role != Role.ADMIN:
        user.role = Role.ADMIN
        await user.save()
    print(f"{'Created' if created else 'Updated'} admin {user.email} ({user.id})")


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument("email")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()
    run_async(main(args.email, args.name))
