# File: dealer_scout/report/html_report.py
"""dealer_scout.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from dealer_scout.aggregator import CheckReport, page_to_dict

#: шаблоны, поставляемые вместе с пакетом
DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_html(
    report: CheckReport,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт из ``report.html.j2`` и сохраняет его по указанному пути.

    Args:
        report: объект CheckReport одной проверки.
        template_dir: директория с Jinja2-шаблонами; *None* означает встроенные.
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.

    Пример:
    ```python
    from dealer_scout.report.html_report import render_html
    html_path = render_html(report, template_dir=None, output_path='reports/dealer.html')
    ```
    """
    template_dir = Path(template_dir) if template_dir is not None else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("report.html.j2")

    context: dict[str, Any] = {
        "input_url": report.input_url,
        "resolved_url": report.resolved_url,
        "site_active": report.site_active,
        "status_code": report.status_code,
        "has_credit_app": report.has_credit_app,
        "pages": [page_to_dict(p, detailed=True) for p in report.pages],
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
