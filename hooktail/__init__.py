"""
Hooktail - Command Webhook Server

Triggers named commands over HTTP, keeps the tail of their output and
optionally ships that output to Loki.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- registry: Per-hook execution state and run exclusivity
- executor: Command execution and output streaming
- sink: Bounded output tail and fan-out to shipping
- shipper: Batched Loki log shipping
- hooks: Trigger/tail orchestration
- api: REST API models
"""

__version__ = "1.0.0"
