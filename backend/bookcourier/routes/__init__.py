# Routes package init
"""
BookCourier Backend — API Routes Package
==========================================

Route Inventory:
    - health.py:    GET  /                         (liveness text)
                    GET  /health                   (dependency health)
    - users.py:     GET  /user, /admin/users, PATCH /admin/users/{id}/role
    - books.py:     public catalogue, librarian listings, admin moderation
    - reviews.py:   POST /reviews, GET /reviews?bookId=
    - orders.py:    order placement, librarian fulfilment, payment
    - wishlist.py:  POST/GET /wishlist, DELETE /wishlist/{id}
    - invoices.py:  GET  /myinvoices

Routes stay thin: declare the access policy, call a service, shape the
response envelope.
"""
