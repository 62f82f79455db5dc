from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.config import Settings
from storefront.database import Base, get_db
from storefront.main import create_app
from storefront.models import Category, Product

JWT_SECRET = "test-secret"
ADMIN_EMAIL = "admin@example.com"
USER_EMAIL = "buyer@example.com"


def make_token(email: str | None, sub: str = "user_123", secret: str = JWT_SECRET, expires_in: int = 3600) -> str:
    claims = {"sub": sub, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


def bearer(email: str | None, **kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(email, **kwargs)}"}


def png_bytes(size=(20, 20), color=(200, 30, 30)) -> bytes:
    output = BytesIO()
    Image.new("RGB", size, color).save(output, format="PNG")
    return output.getvalue()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        auth_jwt_key=JWT_SECRET,
        auth_jwt_algorithms="HS256",
        auth_api_url=None,
        admin_emails=f"{ADMIN_EMAIL}, Owner@Example.com",
        smtp_user=None,
        smtp_password=None,
        cloudinary_cloud_name=None,
        cloudinary_api_key=None,
        cloudinary_api_secret=None,
        upload_dir=str(tmp_path / "uploads"),
        redis_url=None,
        rate_limit_window_ms=15 * 60 * 1000,
        rate_limit_max=100,
        submission_limit_window_ms=60 * 60 * 1000,
        submission_limit_max=5,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(settings, session_factory):
    app = create_app(settings)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return bearer(ADMIN_EMAIL, sub="admin_1")


@pytest.fixture
def user_headers():
    return bearer(USER_EMAIL, sub="user_1")


@pytest.fixture
def catalog(db):
    """Three categories and five products with increasing creation times."""
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    db.add_all([
        Category(id="corporate", name="Corporate Gifting", description="Business gifts", icon="Briefcase"),
        Category(id="drinkware", name="Drinkware", description="Mugs and bottles", icon="Coffee"),
        Category(id="office", name="Office & Utility", icon="FolderOpen"),
    ])
    rows = [
        ("notebook", "Leather Notebook", "corporate", ["Premium"], "Leather-bound notebook with pen"),
        ("hamper", "Gift Hamper", "corporate", [], "Curated premium items"),
        ("bottle", "Steel Bottle", "drinkware", ["Premium", "Eco"], "Insulated water bottle"),
        ("organizer", "Desk Organizer", "office", ["Bulk"], "Desk accessories"),
        ("mug", "Ceramic Mug", "drinkware", ["Eco"], "Branded coffee mug"),
    ]
    ids = {}
    for i, (key, name, category_id, tags, description) in enumerate(rows):
        product = Product(
            name=name,
            description=description,
            category_id=category_id,
            price=Decimal("10.00") + i,
            created_at=base + timedelta(minutes=i),
        )
        product.tags = tags
        db.add(product)
        db.flush()
        ids[key] = product.id
    db.commit()
    return ids
