# Supabase tables: contracts
# This file documents the expected database schema
# Contracts are created and settled elsewhere; this service only reads them

"""
Expected Supabase table structure:

contracts:
- id: uuid (primary key)
- investor_id: uuid (foreign key to users.id, not null)
- freelancer_id: uuid (foreign key to users.id, not null)
- title: text (not null)
- description: text (nullable)
- terms: text (nullable)
- value: numeric (nullable)
- status: text (not null) - values: draft, pending, active, completed, cancelled
- rating: numeric (nullable) - set once completed
- smart_contract_address: text (nullable)
- transaction_hash: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- completed_at: timestamp (nullable)
"""
