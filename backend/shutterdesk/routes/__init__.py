# Routes package init
"""
ShutterDesk Backend - API Routes Package
==========================================

Route Inventory:
    - auth.py:       POST /api/register, /api/login, /api/logout
                     GET  /api/auth/status
    - oauth.py:      GET  /api/auth/google, /api/auth/google/callback (optional)
    - invoices.py:   POST /api/create-invoice; GET /api/invoices, /api/client/invoices
    - contact.py:    POST /api/contact; GET/PATCH /api/contact-inquiries;
                     GET/POST /api/client/requests
    - portfolio.py:  GET/POST/PATCH/DELETE /api/portfolio; GET /api/client/portfolio
    - dashboard.py:  GET  /api/owner/dashboard-summary
    - webhooks.py:   POST /api/stripe/webhook (optional)
    - health.py:     GET  /health

Routes are thin: parse the request, check the role via deps.py, call a
service, return a schema. Business rules live in services/.
"""
