"""Idempotent bootstrap DDL for the discovery tables."""

from __future__ import annotations

import logging

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
	"""
	CREATE TABLE IF NOT EXISTS user_availability (
		user_id TEXT PRIMARY KEY,
		is_available BOOLEAN NOT NULL DEFAULT FALSE,
		last_available_at TIMESTAMPTZ NULL,
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
	)
	""",
	"""
	CREATE INDEX IF NOT EXISTS idx_user_availability_available
		ON user_availability (last_available_at DESC NULLS LAST, user_id)
		WHERE is_available
	""",
	"""
	CREATE TABLE IF NOT EXISTS broadcasts (
		id UUID PRIMARY KEY,
		user_id TEXT NOT NULL UNIQUE,
		message VARCHAR(200) NOT NULL,
		is_active BOOLEAN NOT NULL DEFAULT TRUE,
		expires_at TIMESTAMPTZ NOT NULL,
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		deleted_at TIMESTAMPTZ NULL
	)
	""",
	"""
	CREATE INDEX IF NOT EXISTS idx_broadcasts_expiry
		ON broadcasts (expires_at) WHERE is_active
	""",
	"""
	CREATE TABLE IF NOT EXISTS ranking_config (
		config_key VARCHAR(100) PRIMARY KEY,
		config_value DOUBLE PRECISION NOT NULL,
		description TEXT NOT NULL DEFAULT '',
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS user_profiles (
		user_id TEXT PRIMARY KEY,
		interest_bitset BYTEA NULL,
		lat DOUBLE PRECISION NULL,
		lon DOUBLE PRECISION NULL
	)
	""",
)


async def ensure_schema(pool: asyncpg.pool.Pool) -> None:
	async with pool.acquire() as conn:
		async with conn.transaction():
			for statement in SCHEMA_STATEMENTS:
				await conn.execute(statement)
	logger.info("discovery schema ensured", extra={"tables": 4})
