# dealer_scout/report/json_report.py

"""
Генерация JSON-отчёта для DealerScout.

Сериализация объекта CheckReport в файл.
"""
import json
from pathlib import Path

from dealer_scout.aggregator import CheckReport


def render_json(report: CheckReport, output_path: Path | str, *, verbose: bool = False) -> Path:
    """
    Сохраняет результат проверки report в формате JSON по указанному пути.

    :param report: объект CheckReport одной проверки сайта дилера
    :param output_path: путь к JSON-файлу
    :param verbose: включить все посещённые страницы, а не только совпадения
    :return: Path сохранённого файла

    Пример:
    ```python
    from dealer_scout.report.json_report import render_json
    report_path = render_json(report, 'reports/dealer.json', verbose=True)
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(report.to_dict(verbose=verbose), f, ensure_ascii=False, indent=2)

    return output
