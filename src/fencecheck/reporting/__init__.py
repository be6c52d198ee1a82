from .aggregate import add_result, exit_code_for, finalize, summarize
from .render import render_text, report_payload

__all__ = ["add_result", "exit_code_for", "finalize", "render_text", "report_payload", "summarize"]
