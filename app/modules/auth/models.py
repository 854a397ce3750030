# Supabase tables: users, sessions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null)
- email: text (unique, not null) - stored lower-cased
- cpf: text (unique, not null) - stored as 000.000.000-00
- password_hash: text (not null) - bcrypt, never returned by the API
- active: boolean (default: false) - flipped by an administrator
- failed_login_count: integer (default: 0)
- locked_until: timestamptz (nullable)
- last_login_at: timestamptz (nullable)
- created_at: timestamptz (default: now())

sessions:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (not null, references users.id)
- token_hash: text (unique, not null) - sha256 hex of the issued token
- ip_address: text (nullable)
- user_agent: text (nullable)
- created_at: timestamptz (default: now())
- expires_at: timestamptz (not null)
- active: boolean (default: true)

A session authorizes requests only while active = true and now() < expires_at.
"""

USER_PUBLIC_COLUMNS = "id, name, email, cpf, active, last_login_at, created_at"
USER_LOGIN_COLUMNS = "id, name, email, cpf, password_hash, active, failed_login_count, locked_until"
SESSION_COLUMNS = "id, user_id, expires_at, active"
