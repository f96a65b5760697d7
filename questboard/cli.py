"""
Flask CLI commands for one-off and scheduled maintenance.

flask legacy import <dir>                 – load .jsonl exports from the old database
flask legacy resolve                      – rewrite legacy ids into native references
flask games refresh-stale [--limit N]     – refetch games past the cache window
flask games cleanup-orphans [--max-age-days N] [--dry-run]
flask maintenance cleanup-notifications   – prune old notifications
flask maintenance cleanup-uploads         – delete stored files nothing references
"""
import click
from flask.cli import AppGroup

legacy_cli = AppGroup("legacy", help="Migration from the previous database.")
games_cli = AppGroup("games", help="Game cache maintenance.")
maintenance_cli = AppGroup("maintenance", help="Periodic cleanup jobs.")


@legacy_cli.command("import")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def legacy_import(path):
    from questboard.utils.legacy_migration import import_export_dir

    counts = import_export_dir(path)
    for table, n in counts.items():
        click.echo(f"{table}: {n} rows imported")


@legacy_cli.command("resolve")
def legacy_resolve():
    from questboard.utils.legacy_migration import resolve_all_references

    counts = resolve_all_references()
    for table, n in counts.items():
        click.echo(f"{table}: {n} rows patched")


@games_cli.command("refresh-stale")
@click.option("--limit", default=50, show_default=True, help="Maximum games to refresh.")
def refresh_stale(limit):
    from questboard.utils.game_service import refresh_stale_games

    click.echo(f"Refreshed {refresh_stale_games(limit=limit)} games")


@games_cli.command("cleanup-orphans")
@click.option("--max-age-days", default=14, show_default=True)
@click.option("--dry-run", is_flag=True, help="Report orphans without deleting them.")
def cleanup_orphans(max_age_days, dry_run):
    from questboard.utils.game_service import cleanup_orphaned_games

    result = cleanup_orphaned_games(max_age_days=max_age_days, dry_run=dry_run)
    click.echo(
        f"{result['orphaned_count']} of {result['total_games']} games orphaned, "
        f"{result['deleted']} deleted{' (dry run)' if dry_run else ''}"
    )


@maintenance_cli.command("cleanup-notifications")
def cleanup_notifications_cmd():
    from questboard.utils.helpers import cleanup_notifications

    click.echo(f"Deleted {cleanup_notifications()} notifications")


@maintenance_cli.command("cleanup-uploads")
def cleanup_uploads_cmd():
    from questboard.utils.uploads import cleanup_orphaned_uploads

    result = cleanup_orphaned_uploads()
    click.echo(", ".join(f"{k}: {v}" for k, v in result.items()))


def register_cli(app) -> None:
    app.cli.add_command(legacy_cli)
    app.cli.add_command(games_cli)
    app.cli.add_command(maintenance_cli)
