# Supabase table: expenses
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

expenses (one receipt inside a report):
- id: uuid (primary key, default: gen_random_uuid())
- report_id: uuid (not null, references reports.id, on delete cascade)
- user_id: uuid (not null, references users.id)
- expense_date: date (not null)
- amount: numeric(12, 2) (not null) - reimbursed value, after category caps
- original_amount: numeric(12, 2) (not null) - value on the receipt
- applied_limit: text (nullable) - label of the cap that reduced amount
- category: text (not null) - Alimentação | Deslocamento | Hospedagem | Outros
- description: text (nullable, max 100 chars)
- establishment: text (nullable)
- image_url: text (not null) - receipt image in Supabase Storage
- confidence: integer (default: 0) - extraction/categorization confidence 0-100
- created_at: timestamptz (default: now())
"""
