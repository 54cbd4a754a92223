# Supabase table: businesses
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

businesses:
- id: uuid (primary key)
- owner_id: uuid (not null) - the service provider's user id
- name: text (not null)
- category: text (not null, default: 'Venue Provider') - values: Refreshments, Catering/Food, Venue Provider
- services: text[] (not null) - at least one of refreshments, venue, catering
- description: text (not null, default: '')
- contact: jsonb (not null) - {phone_number, email}
- location: text (not null, default: '')
- image_url: text (nullable) - public URL
- products: jsonb (not null, default: '[]') - [{id, name, description, image_url, in_stock, category}]
- version: integer (not null, default: 0) - optimistic concurrency guard
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Index on owner_id. Service-request notifications point back here through
notifications.business_id.
"""
