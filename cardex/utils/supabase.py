"""Supabase client configuration and query helpers."""

import os
from functools import lru_cache

from dotenv import load_dotenv
from supabase import Client, create_client

from cardex.utils.logger import supabase_logger

# Load environment variables from .env file
load_dotenv()


def _get_supabase_credentials() -> tuple[str, str]:
    """Get and validate Supabase credentials from environment."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_SERVICE_KEY")

    if not url or not key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables are required"
        )

    return url, key


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Create the Supabase client on first use."""
    url, key = _get_supabase_credentials()

    supabase_logger.info("🔧 Initializing Supabase connection...")
    supabase_logger.info(f"   🌐 URL: {url}")
    supabase_logger.info(f"   🔑 Key: {key[:20]}...")

    try:
        client = create_client(url, key)
    except Exception as e:
        supabase_logger.error(f"❌ Supabase connection failed: {e}")
        raise

    supabase_logger.info("✅ Supabase client ready")
    return client


# ===============================================================
# query helpers
# ===============================================================
def supabase_apply_filter(query, filters: dict | None):
    """Apply {column: value | {"in": [...]} | {"neq": value}} filters to a query."""
    if not filters:
        return query
    for k, v in filters.items():
        if v is None:
            supabase_logger.debug(f"supabase_apply_filter: skipping filter {k}=None")
            continue

        if isinstance(v, dict):
            if "in" in v:
                in_val = v.get("in")
                if not isinstance(in_val, (list, tuple)) or len(in_val) == 0:
                    supabase_logger.debug(
                        f"supabase_apply_filter: skipping filter {k} IN {in_val!r}"
                    )
                else:
                    query = query.in_(k, list(in_val))
            elif "neq" in v:
                query = query.neq(k, v["neq"])
            else:
                supabase_logger.warning(f"⚠️ Unsupported filter operator for {k}: {v}")
        else:
            query = query.eq(k, v)
    return query
