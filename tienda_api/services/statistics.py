"""Aggregate statistics over active users and products.

Built on pandas; every figure is computed from a single fetch of the active
records, so the numbers in one response are mutually consistent.
"""
from typing import Any, Dict, List, Optional

import pandas as pd

from tienda_api.core.logging import get_logger
from tienda_api.services.products import ProductService
from tienda_api.services.users import UserService

logger = get_logger(__name__)

GENERAL_HINT = "Usa ?tipo=usuarios o ?tipo=productos para estadísticas específicas"


def _safe_mean(series: Optional[pd.Series]) -> float:
    """Mean rounded to 2 decimals; 0 for an empty or missing column."""
    if series is None:
        return 0.0
    values = pd.to_numeric(series, errors="coerce").dropna()
    if values.empty:
        return 0.0
    return round(float(values.mean()), 2)


def _by_category(df: pd.DataFrame) -> Dict[str, int]:
    if "categoria" not in df.columns:
        return {}
    counts = df["categoria"].fillna("").astype(str).value_counts(sort=False)
    return {str(k): int(v) for k, v in counts.items()}


def product_stats(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals, average price, stock and per-category counts for products."""
    df = pd.DataFrame(records)
    stock = (
        pd.to_numeric(df["stock"], errors="coerce")
        if "stock" in df.columns else pd.Series(dtype=float)
    )
    return {
        "tipo": "productos",
        "total": len(df),
        "precio_promedio": _safe_mean(df.get("precio")),
        "stock_total": int(stock.fillna(0).sum()),
        # A record without a stock field is not "agotado", matching the store query
        "productos_agotados": int((stock == 0).sum()),
        "por_categoria": _by_category(df),
    }


def user_stats(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals, average age and per-category counts for users."""
    df = pd.DataFrame(records)
    return {
        "tipo": "usuarios",
        "total": len(df),
        "edad_promedio": _safe_mean(df.get("edad")),
        "por_categoria": _by_category(df),
    }


class StatisticsService:
    """Statistics endpoints for both collections."""

    def __init__(self, users: UserService, products: ProductService):
        self.users = users
        self.products = products

    async def for_products(self) -> Dict[str, Any]:
        return product_stats(await self.products.records())

    async def for_users(self) -> Dict[str, Any]:
        return user_stats(await self.users.records())

    async def overview(self, tipo: Optional[str] = None) -> Dict[str, Any]:
        """Stats for ``tipo`` ("usuarios" / "productos"), else plain counts."""
        if tipo == "usuarios":
            return await self.for_users()
        if tipo == "productos":
            return await self.for_products()

        usuarios = await self.users.records()
        productos = await self.products.records()
        return {
            "usuarios": len(usuarios),
            "productos": len(productos),
            "mensaje": GENERAL_HINT,
        }
