"""
Domain layer.

Bounded contexts:
- base/: shared kernel with exceptions and ports
- resource/: resources, kinds and references
- graph/: dependency graph construction
- state/: applied state records
- plan/: operations, plans and the planner
"""
