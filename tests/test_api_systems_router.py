from serverside_datatable.api.routers.systems import create_systems_router


def _get_endpoint(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        methods = getattr(route, "methods", set())
        if method.upper() in methods:
            return route.endpoint
    raise AssertionError(f"No route found for {method} {path}")


def test_health():
    endpoint = _get_endpoint(create_systems_router({}), "/systems/health", "GET")
    assert endpoint() == {"status": "ok"}


def test_config_masks_database_url():
    env = {"DATABASE_URL": "postgresql://user:secret@db/app", "API_PORT": 8000, "DATATABLE_MAX_LENGTH": None}
    endpoint = _get_endpoint(create_systems_router(env), "/systems/config", "GET")

    assert endpoint() == {
        "environment": {"DATABASE_URL": "***", "API_PORT": "8000", "DATATABLE_MAX_LENGTH": None},
    }
