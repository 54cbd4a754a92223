# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - Email/password registration and login (auth.users table)
# - Google and Facebook sign-in through OAuth redirects
# - Password reset emails
# - JWT token generation and validation

"""
Supabase Auth calls used here:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.sign_in_with_oauth() - Provider sign-in URL (google, facebook)
- auth.exchange_code_for_session() - Complete an OAuth redirect
- auth.reset_password_for_email() - Send a password reset email
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Every authenticated user gets a row in user_profiles (see users/models.py),
created on registration or on the first OAuth callback.
"""
