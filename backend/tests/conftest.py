import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import ibrac.models  # noqa: F401
from ibrac.core.deps import get_db
from ibrac.db.base import Base
from ibrac.main import app


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def catalog(client):
    """Tipos de entrada/produto e donos usados nos fluxos"""
    async def post(url, payload):
        resp = await client.post(url, json=payload)
        assert resp.status_code == 200, resp.text
        return resp.json()["id"]

    return {
        "compra": await post("/api/v1/catalog/entry-types", {"nome": "Compra", "gera_custo": True}),
        "remessa": await post(
            "/api/v1/catalog/entry-types", {"nome": "Remessa para industrialização", "gera_custo": False}
        ),
        "sucata": await post("/api/v1/catalog/product-types", {"nome": "Sucata de cobre", "codigo": "SUC-CU"}),
        "vergalhao": await post(
            "/api/v1/catalog/product-types", {"nome": "Vergalhão de cobre", "codigo": "VERG-CU"}
        ),
        "ibrac": await post("/api/v1/owners/", {"nome": "IBRAC", "is_ibrac": True}),
        "terceiro": await post("/api/v1/owners/", {"nome": "Metais Silva", "taxa_operacao_pct": 10}),
    }


@pytest.fixture
def create_entry(client, catalog):
    """Registra uma entrada e devolve o JSON da resposta"""
    async def _create(peso=1000.0, valor_total=40000.0, tipo="compra", dono=None, **extra):
        payload = {
            "data_entrada": "2024-03-01",
            "tipo_entrada_id": catalog[tipo],
            "tipo_produto_id": catalog["sucata"],
            "dono_id": catalog[dono] if dono else None,
            "peso_bruto_kg": peso + 20,
            "peso_liquido_kg": peso,
            "valor_total": valor_total,
            **extra,
        }
        resp = await client.post("/api/v1/entries/", json=payload)
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _create
