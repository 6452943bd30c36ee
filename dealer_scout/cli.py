# === FILE: dealer_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска DealerScout через командную строку.

Команды:
  check URL   Проверить сайт дилера и вывести/сохранить результат
  serve       Запустить HTTP-сервис (/dealer/check, /sync/{opp_id})
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       YAML/JSON-конфиг (встроенные значения, если не указан)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...; env LOG_LEVEL)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда check опции:
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблонами
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --verbose           Включить страницы без совпадений
  --check-timeout SEC Таймаут всей проверки (секунд)

Пример:
  dealer-scout check example-motors.com --pretty --verbose
"""
import asyncio
import json
import os
import sys
from pathlib import Path

import click

from dealer_scout import __version__
from dealer_scout.aggregator import error_payload
from dealer_scout.config import load_config
from dealer_scout.engine import run_check
from dealer_scout.errors import SessionError
from dealer_scout.logger import init_logging
from dealer_scout.report.html_report import render_html
from dealer_scout.report.json_report import render_json
from dealer_scout.server import run_server

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='DealerScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Уровень логирования [LOG_LEVEL или INFO]'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд DealerScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('check', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (встроенные, если не указана)'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--verbose', is_flag=True, help='Включить страницы без совпадений')
@click.option(
    '--check-timeout', 'check_timeout',
    type=float,
    default=None,
    help='Таймаут всей проверки (секунд)'
)
@click.pass_context
def check(ctx, url, json_output, html_output, template_dir, pretty, verbose, check_timeout):
    """Проверить, есть ли на сайте URL онлайн-заявка на кредит."""
    cfg = ctx.obj['config']
    verbose = verbose or cfg.verbose
    url = url.strip()
    if not url:
        print_error('URL не может быть пустым')
    try:
        if check_timeout:
            report = asyncio.run(asyncio.wait_for(run_check(cfg, url), timeout=check_timeout))
        else:
            report = asyncio.run(run_check(cfg, url))
    except asyncio.TimeoutError:
        print_error(f'Проверка не завершена за {check_timeout} секунд')
    except SessionError as e:
        click.echo(json.dumps(error_payload(e.input_url, e.resolved_url, str(e))))
        print_error(f'Ошибка при проверке: {e}')

    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty, verbose=verbose))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output, verbose=verbose)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default='0.0.0.0', show_default=True, help='Адрес для прослушивания')
@click.option(
    '--port', type=int,
    default=lambda: int(os.environ.get('PORT', 3000)),
    help='Порт [PORT или 3000]'
)
@click.pass_context
def serve(ctx, host, port):
    """Запустить HTTP-сервис."""
    run_server(ctx.obj['config'], host=host, port=port)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
