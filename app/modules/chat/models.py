# Supabase tables: chat_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

chat_messages:
- id: uuid (primary key)
- sender_id: uuid (foreign key to users.id, not null)
- receiver_id: uuid (foreign key to users.id, not null)
- message: text (not null)
- read: boolean (default: false)
- created_at: timestamp (default: now())
"""
