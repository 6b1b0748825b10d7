"""Core, UI-agnostic building blocks of pom-fixer (models, loader, services)."""
