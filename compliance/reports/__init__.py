"""
Report rendering.

Contains:
- render_table / render_json / render_junit / render_html - рендереры Report -> str
- ReportGenerator - запись отчёта в файл
"""
