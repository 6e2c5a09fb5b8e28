# Services package init
"""
BookCourier Backend — Services Layer
======================================

Business rules between the routes (HTTP) and MongoDB (persistence).
Services receive the database handle as an argument and never touch
request objects.

Service Inventory:
    - IdentityProvider (abstract) / FirebaseIdentityProvider: bearer token verification
    - UserService: lookup, idempotent provisioning, role changes
    - BookService: catalogue, librarian listings, admin moderation and cascade delete
    - OrderService: placement, fulfilment status, payment
    - WishlistService: per-user saved books
    - ReviewService: order-gated reviews
    - InvoiceService: invoices derived from paid orders
"""
