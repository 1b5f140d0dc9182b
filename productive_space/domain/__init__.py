"""
Domain packages. Each owns its schemas, a service that talks to the
booking backend, and a router mounted in productive_space.main.
"""
