# Supabase table: reports
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

reports (ND, "nota de despesa": one trip's expense report):
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (not null, references users.id)
- number: text (not null) - e.g. ND001
- description: text (nullable)
- status: text (not null, default: 'open') - open | closed
- advance_amount: numeric(12, 2) (default: 0) - cash advanced before the trip
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)
"""

STATUS_OPEN = "open"
STATUS_CLOSED = "closed"
