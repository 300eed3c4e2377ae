"""Print the hot resources of an application.

Ranks the resources seen in the last minute by block rate (then pass rate)
and prints them as a table. Useful when the dashboard is unavailable.

Exit codes:
- 0: success
- 1: store not configured or unreachable
- 2: store rejected the query
"""

import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError
from rich.console import Console
from rich.table import Table

from sentinel_metrics.lib.store import is_store_configured
from sentinel_metrics.services.metric_query import HOT_RESOURCE_WINDOW
from sentinel_metrics.services.metrics_repository import create_metrics_repository

# Configure logging
logging.basicConfig(
  level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()

env_path = Path(__file__).parent.parent / '.env.local'
if env_path.exists():
  load_dotenv(env_path)


@click.command()
@click.option('--app', 'app_name', required=True, help='Application name')
@click.option('--limit', default=10, type=click.IntRange(min=1), help='Maximum resources to show')
def main(app_name, limit):
  """Show the most block-pressured resources of an application."""
  if not is_store_configured():
    console.print('[red]Error: metric store is not configured[/red]')
    console.print('[yellow]Set INFLUXDB_HOST in .env.local or the environment[/yellow]')
    sys.exit(1)

  try:
    repository = create_metrics_repository()
    resources = repository.list_resources(app_name)
  except (InfluxDBClientError, InfluxDBServerError) as e:
    logger.error(f'Top resources query failed: {e}', exc_info=True)
    sys.exit(2)
  except Exception as e:
    logger.error(f'Fatal error while reading metrics: {e}', exc_info=True)
    sys.exit(1)

  if not resources:
    window = int(HOT_RESOURCE_WINDOW.total_seconds())
    console.print(f'[dim]No metrics for {app_name} in the last {window}s[/dim]')
    return

  table = Table(title=f'Hot resources: {app_name}')
  table.add_column('Rank', justify='right')
  table.add_column('Resource')
  for rank, resource in enumerate(resources[:limit], start=1):
    table.add_row(str(rank), resource)

  console.print(table)
  logger.info(f'Listed {min(limit, len(resources))} of {len(resources)} resources for {app_name}')


if __name__ == '__main__':
  main()
