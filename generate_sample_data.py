#!/usr/bin/env python3
"""
Generate a sample directory file with a realistic organization for trying out the app.
This script will replace sample_users.json with a new file containing:
- A CEO and executive team
- Managers and individual contributors under them
- A second top-level person with no manager
- One person whose manager is not in the directory

Point DIRECTORY_FILE at the output to run the app without network access.
"""

import json
import random
import sys
from pathlib import Path

OUTPUT_PATH = Path(__file__).parent / "sample_users.json"

FIRST_NAMES = ["Ana", "Ben", "Chloe", "Dmitri", "Elena", "Farid", "Grace", "Hiro",
               "Ines", "Jonas", "Kira", "Liam", "Maya", "Noah", "Omar", "Priya"]
LAST_NAMES = ["Alvarez", "Brown", "Chen", "Dubois", "Evans", "Fischer", "Garcia", "Haddad",
              "Ivanova", "Jensen", "Kim", "Lopez", "Mueller", "Novak", "Okafor", "Patel"]

EXECUTIVES = 3
MANAGERS_PER_EXECUTIVE = 2
REPORTS_PER_MANAGER = 3


def make_user(user_id: int, manager_id=None) -> dict:
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    user = {
        "id": user_id,
        "firstName": first,
        "lastName": last,
        "email": f"{first.lower()}.{last.lower()}{user_id}@example.com",
        "password": "changeme",
    }
    if random.random() < 0.5:
        user["photo"] = f"https://i.pravatar.cc/150?u={user_id}"
    if manager_id is not None:
        user["managerId"] = manager_id
    return user


def generate_users() -> list:
    users = []
    next_id = 1

    ceo_id = next_id
    users.append(make_user(ceo_id))
    next_id += 1

    for _ in range(EXECUTIVES):
        exec_id = next_id
        users.append(make_user(exec_id, ceo_id))
        next_id += 1
        for _ in range(MANAGERS_PER_EXECUTIVE):
            manager_id = next_id
            users.append(make_user(manager_id, exec_id))
            next_id += 1
            for _ in range(REPORTS_PER_MANAGER):
                users.append(make_user(next_id, manager_id))
                next_id += 1

    # A separate root and a dangling manager reference
    users.append(make_user(next_id))
    users.append(make_user(next_id + 1, 999))
    return users


def main():
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 42
    random.seed(seed)
    users = generate_users()
    with open(OUTPUT_PATH, "w", encoding="utf-8") as f:
        json.dump({"users": users}, f, indent=2)
    print(f"Wrote {len(users)} users to {OUTPUT_PATH}")


if __name__ == "__main__":
    main()
