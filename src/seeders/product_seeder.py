import os
import sys
import uuid
from datetime import datetime
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

# Add the project root to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from src.app.features.pharmacies.models import User, PharmacyOwnerProfile
from src.app.features.store.models import Product
from src.db.url import get_sqlalchemy_url

_TRUE = {"true", "yes", "1"}


def create_session():
    """Create and return a new SQLAlchemy session."""
    engine = create_engine(get_sqlalchemy_url(), echo=False)
    DBSession = sessionmaker(bind=engine)
    return DBSession()


def parse_product_data(file_path):
    """Parse blank-line separated `key: value` blocks into product dicts.

    Each block names its pharmacy (`pharmacy`, `city`, optional `area`) so the
    seeder can create one owner per distinct pharmacy name.
    """
    with open(file_path, "r") as f:
        content = f.read()

    products = []
    product_entries = content.strip().split("\n\n")

    for entry in product_entries:
        product_data = {}
        lines = entry.strip().split("\n")
        for line in lines:
            if ":" in line:
                key, value = line.split(":", 1)
                key = key.strip().lower()
                value = value.strip()

                if key == "product":
                    product_data["name"] = value
                elif key == "description":
                    product_data["description"] = value
                elif key == "category":
                    product_data["category"] = value
                elif key == "price":
                    product_data["price"] = float(value)
                elif key == "stock":
                    product_data["stock"] = int(value)
                elif key == "near_expiry":
                    product_data["is_near_expiry"] = value.lower() in _TRUE
                elif key == "expiry_date":
                    product_data["expiry_date"] = datetime.fromisoformat(value)
                elif key in ("pharmacy", "city", "area"):
                    product_data[key] = value

        if all(k in product_data for k in ("name", "price", "category", "pharmacy", "city")):
            product_data.setdefault("stock", 0)
            products.append(product_data)

    return products


SEED_EMAIL_DOMAIN = "@seed.local"


def _seed_email(name, taken):
    slug = "".join(ch for ch in name.lower() if ch.isalnum()) or uuid.uuid4().hex[:8]
    email, n = f"{slug}{SEED_EMAIL_DOMAIN}", 1
    while email in taken:
        n += 1
        email = f"{slug}-{n}{SEED_EMAIL_DOMAIN}"
    taken.add(email)
    return email


def _owner_for(session, owners, emails, data):
    name = data["pharmacy"]
    if name not in owners:
        user = User(email=_seed_email(name, emails), role="PHARMACY_OWNER")
        session.add(user)
        session.flush()
        owner = PharmacyOwnerProfile(
            user_id=user.id,
            pharmacy_name=name,
            contact_person=name,
            city=data["city"],
            area=data.get("area"),
        )
        session.add(owner)
        session.flush()
        owners[name] = owner
    return owners[name]


def clear_seed_data(session):
    """Remove earlier seed owners and their products; real accounts stay."""
    seed_users = select(User.id).where(User.email.like(f"%{SEED_EMAIL_DOMAIN}"))
    seed_owners = select(PharmacyOwnerProfile.id).where(
        PharmacyOwnerProfile.user_id.in_(seed_users)
    )
    session.query(Product).filter(Product.pharmacy_owner_id.in_(seed_owners)).delete(
        synchronize_session=False
    )
    session.query(PharmacyOwnerProfile).filter(
        PharmacyOwnerProfile.user_id.in_(seed_users)
    ).delete(synchronize_session=False)
    session.query(User).filter(User.email.like(f"%{SEED_EMAIL_DOMAIN}")).delete(
        synchronize_session=False
    )


def seed_products(session, products_data):
    """Seed the database with pharmacies and their products."""
    clear_seed_data(session)

    owners, emails = {}, set()
    for data in products_data:
        owner = _owner_for(session, owners, emails, data)
        fields = {
            k: v for k, v in data.items() if k not in ("pharmacy", "city", "area")
        }
        session.add(Product(pharmacy_owner_id=owner.id, **fields))
    session.commit()
    return len(owners)


def main():
    """Main function to run the seeder."""
    session = create_session()
    file_path = sys.argv[1] if len(sys.argv) > 1 else "tests/data/product_list.txt"
    products_data = parse_product_data(file_path)
    pharmacies = seed_products(session, products_data)
    print(f"Seeded {len(products_data)} products across {pharmacies} pharmacies.")


if __name__ == "__main__":
    main()
