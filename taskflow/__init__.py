"""Work-item lifecycle engine.

Decides which status changes a task or bug may take, who may make them,
and which business rules must hold first. Also derives display metrics
(progress, SLA tier) from the same records.

Modules:
    - lifecycle: status graphs, role matrix, business rules, validator, metrics
    - shared: logging and datetime helpers
"""

__version__ = "0.1.0"
