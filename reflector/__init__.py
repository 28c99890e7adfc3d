"""Weekly reflection batch orchestrator."""
