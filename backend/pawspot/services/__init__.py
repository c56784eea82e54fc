# Services package init
"""
PawSpot API — Services Layer
=============================

Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - query_service:    query string → filter expression, projection, sort, page window
    - filter_compiler:  filter expression / sort / projection → SQLAlchemy clauses
    - pagination:       page window arithmetic and next/prev links
    - validation:       entity constraints of a location record
    - LocationService:  create / read / update / delete / list of locations
    - PhotoService:     upload validation, storage and attachment of photos
"""
