"""
Pizza Gateway — Services Layer
===============================

Service Inventory:
    - auth_service:    credential strategies (bearer token, API key) and login
    - catalog_service: ingredient and menu passthroughs
    - order_service:   header-then-items order flows

Services receive the Database from the route; they hold no state of their own.
"""
