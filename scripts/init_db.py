"""
Create the analytics tables and optionally seed a restaurant.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --seed tonys-pizza --name "Tony's Pizza"
"""

import argparse

from sqlmodel import Session

from menu_analytics.db import create_db_and_tables, engine
from menu_analytics.api.analytics import find_restaurant
from menu_analytics.models import Restaurant


def seed_restaurant(slug: str, name: str, inactive: bool = False) -> Restaurant:
    with Session(engine) as session:
        restaurant = find_restaurant(session, slug)
        if restaurant is None:
            restaurant = Restaurant(slug=slug, name=name)
        restaurant.is_active = not inactive
        session.add(restaurant)
        session.commit()
        session.refresh(restaurant)
        return restaurant


def main():
    parser = argparse.ArgumentParser(description="Create analytics tables")
    parser.add_argument("--seed", metavar="SLUG", help="Create or update a restaurant with this slug")
    parser.add_argument("--name", help="Display name for the seeded restaurant")
    parser.add_argument("--inactive", action="store_true", help="Mark the seeded restaurant inactive")
    args = parser.parse_args()

    print("Creating tables...")
    create_db_and_tables()
    print("Tables created successfully!")

    if args.seed:
        restaurant = seed_restaurant(args.seed, args.name or args.seed, inactive=args.inactive)
        print(f"Restaurant {restaurant.slug} ready (id={restaurant.id}, active={restaurant.is_active})")


if __name__ == "__main__":
    main()
