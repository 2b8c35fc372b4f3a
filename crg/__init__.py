"""Compose Readiness Gate (CRG).

Small CI helper that:
 - starts a docker compose project once
 - polls every container of the project until its health check passes
 - discovers the host ports docker assigned to each service
 - publishes them as pipeline variables (project.<P>.service.<S>.port.<N>)

Every failure ends the run with its own exit code so a pipeline can tell them apart.
"""
