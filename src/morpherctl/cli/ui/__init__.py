"""
morpherctl CLI UI Package
Rich terminal UI components
"""

from .components import (
    create_header,
    create_status_table,
    create_detail_table,
    create_verification_table,
    create_summary_panel,
    create_verdict_panel,
    create_config_table,
    create_info_panel,
    create_error_panel,
    create_success_panel,
    create_warning_panel,
    print_step,
)

__all__ = [
    "create_header",
    "create_status_table",
    "create_detail_table",
    "create_verification_table",
    "create_summary_panel",
    "create_verdict_panel",
    "create_config_table",
    "create_info_panel",
    "create_error_panel",
    "create_success_panel",
    "create_warning_panel",
    "print_step",
]
