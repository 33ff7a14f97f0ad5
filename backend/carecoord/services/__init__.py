#data-access layer: routers call these functions, never the ORM directly
