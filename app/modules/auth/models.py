# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - User login, OAuth and session management
# - JWT token generation and validation
# - Password reset emails

"""
Supabase Auth provides:
- auth.sign_up() - Register new users; user_type ("freelancer" | "investor") goes in user_metadata
- auth.sign_in_with_password() - Authenticate users
- auth.sign_in_with_oauth() - Redirect URL for provider sign-in
- auth.get_user() - Get current user from JWT token
- auth.reset_password_for_email() - Send reset link to {frontend_url}/reset-password
- auth.admin.update_user_by_id() - Set a new password (service role key)
- auth.sign_out() - Logout users

RPC:
- check_email_exists(email_to_check text) returns boolean
"""
