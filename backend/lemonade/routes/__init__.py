# Routes package init
"""
Lemonade Backend: API Routes Package
=====================================

Route Inventory:
    - beverages.py:  /beverage/types, /beverage/sizes, /beverage/price-links (CRUD)
    - orders.py:     POST /orders, GET /orders, GET /orders/{id}
    - health.py:     GET /health

Routes are thin: they parse the request, call one service method and pick
the status code. Errors raised by services are turned into responses by the
handlers registered in main.py.
"""
