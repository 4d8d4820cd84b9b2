# Supabase tables: matches
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

matches:
- id: uuid (primary key)
- investor_id: uuid (foreign key to users.id, not null)
- freelancer_id: uuid (foreign key to users.id, not null)
- status: text (not null, default: 'pending') - values: pending, accepted, declined
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

At most one row is expected per (investor_id, freelancer_id) pair; request_match
returns the existing row instead of inserting a second one.
"""
