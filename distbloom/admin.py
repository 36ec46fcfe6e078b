#!/usr/bin/env python3
"""
distbloom Admin Setup Script

⚠️  ADMIN/DBA ONLY - NOT FOR REGULAR USERS ⚠️

Creates the PostgreSQL objects FilterStore needs. Run this ONCE per
database/schema; after that every node can save, load and merge filters.

USAGE:
    distbloom-admin --host localhost --user postgres --password mypass

WHAT IT DOES:
    - Creates table: <schema>.bloom_filters
    - Creates functions: dbf_save, dbf_load, dbf_merge, dbf_delete
"""

import argparse
import os
import sys

import psycopg2
from psycopg2 import sql

STORE_FUNCTIONS = ('dbf_save', 'dbf_load', 'dbf_merge', 'dbf_delete')


def check_store_setup(conn, schema: str) -> bool:
    """
    Check if the bloom_filters table and functions are already set up.

    Args:
        conn: Database connection
        schema: PostgreSQL schema name

    Returns:
        True if the table and all store functions exist
    """
    with conn.cursor() as cursor:
        cursor.execute(
            "SELECT 1 FROM information_schema.tables WHERE table_schema = %s AND table_name = %s",
            (schema, 'bloom_filters')
        )
        if cursor.fetchone() is None:
            return False

        cursor.execute(
            """SELECT COUNT(DISTINCT routine_name) FROM information_schema.routines
               WHERE routine_schema = %s
               AND routine_name IN %s""",
            (schema, STORE_FUNCTIONS)
        )
        function_count = cursor.fetchone()[0]

    return function_count >= len(STORE_FUNCTIONS)


def create_store_infrastructure(conn, schema: str, force_recreate: bool = False):
    """
    Create the bloom_filters table and functions in PostgreSQL.

    Args:
        conn: Database connection
        schema: PostgreSQL schema name
        force_recreate: If True, drops and recreates all objects
    """
    schema_ident = sql.Identifier(schema)

    with conn.cursor() as cursor:
        cursor.execute(
            sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(schema_ident)
        )
        conn.commit()

        if force_recreate:
            cursor.execute(sql.SQL("""
DROP TABLE IF EXISTS {s}.bloom_filters CASCADE;
DROP FUNCTION IF EXISTS {s}.dbf_save(TEXT, BYTEA, BIGINT, INTEGER, BIGINT[], BIGINT);
DROP FUNCTION IF EXISTS {s}.dbf_load(TEXT);
DROP FUNCTION IF EXISTS {s}.dbf_merge(TEXT, BYTEA, BIGINT, INTEGER, BIGINT[], BIGINT);
DROP FUNCTION IF EXISTS {s}.dbf_delete(TEXT);
""").format(s=schema_ident))
            conn.commit()

        cursor.execute(sql.SQL("""
-- One row per named filter, bits stored sparsely
CREATE TABLE IF NOT EXISTS {s}.bloom_filters (
    name TEXT PRIMARY KEY,
    seed BYTEA NOT NULL,
    m BIGINT NOT NULL CHECK (m > 0),
    k INTEGER NOT NULL CHECK (k > 0),
    bit_indices BIGINT[] NOT NULL DEFAULT '{{}}',
    element_count BIGINT NOT NULL DEFAULT 0,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

-- Function: SAVE (replace) a filter snapshot
CREATE OR REPLACE FUNCTION {s}.dbf_save(
    p_name TEXT,
    p_seed BYTEA,
    p_m BIGINT,
    p_k INTEGER,
    p_bit_indices BIGINT[],
    p_count BIGINT
)
RETURNS BOOLEAN AS $$
BEGIN
    INSERT INTO {s}.bloom_filters (name, seed, m, k, bit_indices, element_count)
    VALUES (p_name, p_seed, p_m, p_k, p_bit_indices, p_count)
    ON CONFLICT (name)
    DO UPDATE SET
        seed = EXCLUDED.seed,
        m = EXCLUDED.m,
        k = EXCLUDED.k,
        bit_indices = EXCLUDED.bit_indices,
        element_count = EXCLUDED.element_count,
        updated_at = NOW();

    RETURN TRUE;
END;
$$ LANGUAGE plpgsql;

-- Function: LOAD a filter snapshot
CREATE OR REPLACE FUNCTION {s}.dbf_load(p_name TEXT)
RETURNS TABLE (seed BYTEA, m BIGINT, k INTEGER, bit_indices BIGINT[], element_count BIGINT) AS $$
BEGIN
    RETURN QUERY
    SELECT f.seed, f.m, f.k, f.bit_indices, f.element_count
    FROM {s}.bloom_filters f
    WHERE f.name = p_name;
END;
$$ LANGUAGE plpgsql;

-- Function: MERGE bit indices into a snapshot
-- Returns the number of set bits afterwards, or -1 if seed/m/k differ
-- element_count is summed, so it overcounts elements several nodes added
CREATE OR REPLACE FUNCTION {s}.dbf_merge(
    p_name TEXT,
    p_seed BYTEA,
    p_m BIGINT,
    p_k INTEGER,
    p_bit_indices BIGINT[],
    p_count BIGINT
)
RETURNS INTEGER AS $$
DECLARE
    v_seed BYTEA;
    v_m BIGINT;
    v_k INTEGER;
    v_merged BIGINT[];
BEGIN
    SELECT f.seed, f.m, f.k INTO v_seed, v_m, v_k
    FROM {s}.bloom_filters f
    WHERE f.name = p_name
    FOR UPDATE;

    IF NOT FOUND THEN
        v_merged := ARRAY(SELECT DISTINCT i FROM unnest(p_bit_indices) AS i ORDER BY i);
        INSERT INTO {s}.bloom_filters (name, seed, m, k, bit_indices, element_count)
        VALUES (p_name, p_seed, p_m, p_k, v_merged, p_count);
        RETURN COALESCE(array_length(v_merged, 1), 0);
    END IF;

    IF v_seed <> p_seed OR v_m <> p_m OR v_k <> p_k THEN
        RETURN -1;
    END IF;

    UPDATE {s}.bloom_filters f
    SET bit_indices = ARRAY(
            SELECT DISTINCT i FROM unnest(f.bit_indices || p_bit_indices) AS i ORDER BY i
        ),
        element_count = f.element_count + p_count,
        updated_at = NOW()
    WHERE f.name = p_name
    RETURNING f.bit_indices INTO v_merged;

    RETURN COALESCE(array_length(v_merged, 1), 0);
END;
$$ LANGUAGE plpgsql;

-- Function: DELETE a filter
CREATE OR REPLACE FUNCTION {s}.dbf_delete(p_name TEXT)
RETURNS BOOLEAN AS $$
DECLARE
    v_deleted INTEGER;
BEGIN
    DELETE FROM {s}.bloom_filters WHERE name = p_name;
    GET DIAGNOSTICS v_deleted = ROW_COUNT;
    RETURN v_deleted > 0;
END;
$$ LANGUAGE plpgsql;
""").format(s=schema_ident))
        conn.commit()


def setup_store(
    host: str,
    database: str,
    user: str,
    password: str,
    port: int = 5432,
    schema: str = "public",
    force: bool = False
) -> bool:
    """
    Set up the filter store once.

    Args:
        host: Database host
        database: Database name
        user: Admin user (with CREATE TABLE permissions)
        password: Password
        port: Database port
        schema: Schema to create the bloom_filters table in (default: public)
        force: Drop and recreate existing objects (DELETES ALL STORED FILTERS)

    Returns:
        True if the store is ready, False if verification failed
    """
    conn = psycopg2.connect(
        host=host,
        port=port,
        database=database,
        user=user,
        password=password
    )
    try:
        if check_store_setup(conn, schema):
            if not force:
                print("\n⚠️  Filter store already exists!")
                print("   Use --force to recreate (will DELETE ALL STORED FILTERS!)")
                print("✓ Setup skipped - store is ready!")
                return True
            print("\n🗑️  Force flag set - dropping and recreating filter store...")
            create_store_infrastructure(conn, schema, force_recreate=True)
            print("✓ Filter store recreated")
        else:
            print("\n📦 Creating filter store...")
            create_store_infrastructure(conn, schema, force_recreate=False)
            print("✓ Filter store created")

        if not check_store_setup(conn, schema):
            print("\n❌ ERROR - Setup verification failed")
            return False

        print(f"\nTable: {schema}.bloom_filters")
        print("Functions: " + ", ".join(STORE_FUNCTIONS))
        print("\nNodes can now share filters:")
        print(f"  store = FilterStore(host='{host}', database='{database}', user='<their_user>')")
        print("  store.merge('my-filter', dbf)")
        return True
    finally:
        conn.close()


def build_parser() -> argparse.ArgumentParser:
    """Command-line parser; connection defaults come from the libpq environment."""
    parser = argparse.ArgumentParser(
        description="distbloom Admin Setup Script (Admin/DBA Only)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Local PostgreSQL
  distbloom-admin --host localhost --user postgres --password mypass

  # Setup with custom schema
  distbloom-admin --host myhost --user admin --password mypass --schema filters

  # CI/CD with force recreate
  PGPASSWORD=$DB_PASS distbloom-admin --host myhost --user admin --force
        """
    )

    parser.add_argument("--host", default=os.environ.get("PGHOST", "localhost"), help="Database host")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PGPORT", "5432")), help="Database port")
    parser.add_argument("--database", default=os.environ.get("PGDATABASE", "postgres"), help="Database name")
    parser.add_argument("--user", default=os.environ.get("PGUSER", "postgres"), help="Admin user (with CREATE TABLE permissions)")
    parser.add_argument("--password", default=os.environ.get("PGPASSWORD"), help="Database password (default: $PGPASSWORD)")
    parser.add_argument("--schema", default="public", help="Schema for the bloom_filters table")
    parser.add_argument("--force", action="store_true", help="Force recreate (no prompts, for CI/CD)")
    return parser


def run_admin_setup(argv=None) -> int:
    """Run admin setup with command-line argument parsing"""
    args = build_parser().parse_args(argv)

    if args.password is None:
        print("ERROR: --password (or PGPASSWORD) is required")
        return 1

    print(f"\n{'='*70}")
    print("distbloom Admin Setup")
    print(f"{'='*70}")
    print(f"Host: {args.host}")
    print(f"Database: {args.database}")
    print(f"Schema: {args.schema}")
    print(f"User: {args.user}")
    print(f"{'='*70}\n")

    try:
        ready = setup_store(
            host=args.host,
            database=args.database,
            user=args.user,
            password=args.password,
            port=args.port,
            schema=args.schema,
            force=args.force
        )
    except psycopg2.Error as e:
        print(f"\n❌ ERROR during setup: {e}")
        return 1

    if not ready:
        return 1

    print("\n" + "=" * 70)
    print("✅ SUCCESS - Filter store is ready!")
    print("=" * 70)
    return 0


def main():
    """Entry point for console script"""
    sys.exit(run_admin_setup())


if __name__ == "__main__":
    main()
