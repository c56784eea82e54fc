# Routes package init
"""
PawSpot API — API Routes Package
=================================

Route Inventory:
    - locations.py:  /api/v1/locations          (list, create)
                     /api/v1/locations/{id}     (get, update, delete)
                     /api/v1/locations/{id}/photo (upload)
    - uploads.py:    GET /uploads/{filename}    (stored photos)
    - health.py:     GET /health                (service health check)

Routes stay thin: extract the query string, body or upload, call a service,
wrap the result in the response envelope. Business rules live in services.
"""
