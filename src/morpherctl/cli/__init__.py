"""
morpherctl CLI Package
Typer sub-applications and Rich output helpers
"""
