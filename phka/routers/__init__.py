from phka.routers import admin, auth, beauty, cart, catalog, community, orders, support, users

ROUTERS = [
    auth.router,
    catalog.router,
    cart.router,
    orders.router,
    users.router,
    beauty.router,
    community.router,
    support.router,
    admin.router,
]
