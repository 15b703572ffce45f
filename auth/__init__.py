"""
auth: user authentication module.

Provides:
  • Bearer token issue & verification (HS256 JWT)
  • Password hashing (bcrypt, per-hash salt)
  • Credential store keyed by unique email
  • Register / Login API routes
  • ``require_user`` access gate dependency
"""
