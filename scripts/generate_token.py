#!/usr/bin/env python3
"""
Generate a signed bearer token for an existing user, for manual API testing.

Usage: JWT_SECRET=... python scripts/generate_token.py user@example.com
"""

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from connect_db import SessionLocal
from core.security import create_access_token, decode_access_token
from models.models import User

def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email.lower()).first()
    finally:
        db.close()

    if user is None:
        print(f"No user with email {args.email}")
        return 1

    token = create_access_token(user.id, user.email)
    print(token)
    print(f"Verified claims: {decode_access_token(token)}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
