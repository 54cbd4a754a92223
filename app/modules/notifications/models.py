# Supabase table: notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key)
- recipient_id: uuid (not null) - inbox owner; rows are only written by the
  action that triggers them (requester, approver, event mutator)
- type: text (not null) - values: join_request, join_response, event_update, service_request
- event_id: uuid (not null)
- event_title: text (not null)
- user_id: uuid (nullable) - acting user (the requester for join_request)
- user_name: text (nullable)
- business_id: uuid (nullable) - the booked business, service_request only
- message: text (not null)
- status: text (not null) - values: pending, approved, denied, unread, read
- read: boolean (not null, default: false)
- created_at: timestamp (default: now())

Index on (recipient_id, created_at desc).
"""
