# Supabase tables: user_profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

user_profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (nullable) - synced from auth.users
- display_name: text (not null)
- photo_url: text (nullable)
- bio: text (nullable)
- location: text (nullable)
- followers: text[] (not null, default: '{}') - ids of users following this user
- following: text[] (not null, default: '{}') - ids this user follows
- version: integer (not null, default: 0) - optimistic concurrency guard
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Ids in followers/following are not foreign keys; they may dangle after a
profile is deleted and readers must tolerate that.
"""
