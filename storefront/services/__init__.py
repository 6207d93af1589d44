# Services package.
#
# Each module exposes a service class that encapsulates business rules
# for a single domain aggregate:
#
#   user_service     — registration, login, ownership and purchase checks
#   product_service  — product existence checks, listing and creation
#
# Services receive their stores at construction; the stores own the
# database sessions, one per call.
