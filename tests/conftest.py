from rostra.testing.pytest import router_server, serve_router  # noqa: F401
