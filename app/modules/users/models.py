# Supabase tables: users, profiles; storage bucket: avatars
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (not null)
- user_type: text (not null) - values: freelancer, investor
- created_at: timestamp (default: now())

profiles:
- id: uuid (primary key, references users.id)
- name: text (nullable)
- bio: text (nullable)
- profile_image: text (nullable) - public URL in the avatars bucket
- wallet_address: text (nullable) - 0x-prefixed Ethereum address
- skills: text[] (freelancers)
- industries: text[] (investors)
- experience: jsonb
- education: jsonb
- portfolio: jsonb
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Storage:
- bucket "avatars", objects under profile-images/{user_id}-{epoch_ms}.{ext}

Note: profiles rows are upserted wholesale from the client side; concurrent
writers overwrite each other (last write wins).
"""
