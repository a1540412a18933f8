"""Stake Ledger CLI."""
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from .core import LedgerCLI
from .core.errors import ConfigError, StakingError, TokenPaused
from .core.ledger import LOCK_PERIOD
from .core.units import from_base_units, to_base_units


def configure_logging(level: str) -> None:
    """Route loguru output to stderr through click so test runners capture it."""
    logger.remove()
    logger.add(lambda message: click.echo(message, err=True, nl=False),
               level=level.upper(), format="{level}: {message}")


def format_amount(raw: int, decimals: int) -> str:
    value = from_base_units(raw, decimals)
    return f"{value.normalize():f}" if value else "0"


def format_time(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime('%Y-%m-%d %H:%M:%S')


def parse_amount(amount: str, decimals: int, raw: bool) -> int:
    try:
        return int(amount) if raw else to_base_units(amount, decimals)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="AMOUNT")


def fail(error: Exception) -> None:
    """Print an error with its code and exit with status 1."""
    if isinstance(error, StakingError):
        click.echo(f"Error [{error.code}]: {error}", err=True)
        if error.hint and str(error) != error.hint:
            click.echo(error.hint, err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


pass_app = click.make_pass_decorator(LedgerCLI)


@click.group()
@click.version_option(package_name="stake-ledger")
@click.option('--state-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory holding ledger.json (default: $STAKE_LEDGER_HOME or the user config dir)')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Path to YAML settings file')
@click.option('--log-level', help='Log level (default: $STAKE_LEDGER_LOG_LEVEL or INFO)')
@click.option('--now', type=int, help='Use this UNIX timestamp as the current time')
@click.pass_context
def cli(ctx, state_dir: Optional[Path], config_path: Optional[Path], log_level: Optional[str], now: Optional[int]):
    """Stake Ledger CLI - stake tokens, accrue daily rewards, claim and restake."""
    try:
        app = LedgerCLI.from_options(config_path=config_path, state_dir=state_dir,
                                     log_level=log_level, now=now)
    except ConfigError as e:
        fail(e)
    configure_logging(app.settings.log_level)
    ctx.obj = app


@cli.command()
@click.option('--reward-rate', type=int, help='Whole tokens distributed per day (default from settings)')
@click.option('--force', is_flag=True, help='Overwrite an existing ledger')
@pass_app
def init(app: LedgerCLI, reward_rate: Optional[int], force: bool):
    """Create a new ledger and staked token."""
    if app.store.exists() and not force:
        click.echo(f"A ledger already exists at {app.store.path}. Use --force to replace it.", err=True)
        sys.exit(1)
    try:
        ledger = app.create_ledger(reward_rate)
    except StakingError as e:
        fail(e)
    app.save(ledger)
    token = ledger.staked_token
    click.echo(f"Initialized ledger at {app.store.path}")
    click.echo(f"Token: {token.name} ({token.symbol}) at {token.address}")
    click.echo(f"Reward rate: {ledger.get_reward_rate()} {token.symbol}/day")


# Token


@cli.group()
def token():
    """Manage the staked token."""
    pass


@token.command()
@click.argument('account')
@click.argument('amount')
@click.option('--raw', is_flag=True, help='AMOUNT is in base units')
@pass_app
def mint(app: LedgerCLI, account: str, amount: str, raw: bool):
    """Mint tokens to ACCOUNT."""
    ledger = app.load_ledger()
    tok = ledger.staked_token
    value = parse_amount(amount, tok.decimals, raw)
    try:
        tok.mint(account, value)
    except (TokenPaused, ValueError) as e:
        fail(e)
    app.save(ledger)
    click.echo(f"Minted {format_amount(value, tok.decimals)} {tok.symbol} to {account}")


@token.command()
@click.argument('account')
@pass_app
def balance(app: LedgerCLI, account: str):
    """Show ACCOUNT's token balance."""
    ledger = app.load_ledger()
    tok = ledger.staked_token
    click.echo(f"Balance: {format_amount(tok.balance_of(account), tok.decimals)} {tok.symbol}")


@token.command()
@pass_app
def pause(app: LedgerCLI):
    """Pause all token transfers."""
    ledger = app.load_ledger()
    ledger.staked_token.pause()
    app.save(ledger)
    click.echo("Token paused")


@token.command()
@pass_app
def unpause(app: LedgerCLI):
    """Resume token transfers."""
    ledger = app.load_ledger()
    ledger.staked_token.unpause()
    app.save(ledger)
    click.echo("Token unpaused")


# Reward pool


@cli.group()
def pool():
    """Manage the reward pool held in ledger custody."""
    pass


@pool.command()
@click.argument('account')
@click.argument('amount')
@click.option('--raw', is_flag=True, help='AMOUNT is in base units')
@pass_app
def fund(app: LedgerCLI, account: str, amount: str, raw: bool):
    """Move AMOUNT from ACCOUNT into ledger custody to pay rewards."""
    ledger = app.load_ledger()
    tok = ledger.staked_token
    value = parse_amount(amount, tok.decimals, raw)
    if value <= 0 or not tok.transfer(account, ledger.address, value):
        click.echo(f"Failed to fund pool: transfer of {amount} {tok.symbol} from {account} was rejected", err=True)
        sys.exit(1)
    app.save(ledger)
    click.echo(f"Funded pool with {format_amount(value, tok.decimals)} {tok.symbol}")


@pool.command()
@pass_app
def status(app: LedgerCLI):
    """Show totals, reward rate and custody balance."""
    ledger = app.load_ledger()
    tok = ledger.staked_token
    staked = ledger.get_total_staked()
    custody = ledger.custody_balance()
    click.echo("\nPool Status:")
    click.echo("-" * 60)
    click.echo(f"Total Staked:    {format_amount(staked, tok.decimals)} {tok.symbol}")
    click.echo(f"Reward Rate:     {ledger.get_reward_rate()} {tok.symbol}/day")
    click.echo(f"Custody Balance: {format_amount(custody, tok.decimals)} {tok.symbol}")
    click.echo(f"Reward Reserve:  {format_amount(max(custody - staked, 0), tok.decimals)} {tok.symbol}")
    click.echo(f"Stakers:         {sum(1 for r in ledger.records().values() if r.is_active)}")


# Staking operations


@cli.command()
@click.argument('account')
@click.argument('amount')
@click.option('--raw', is_flag=True, help='AMOUNT is in base units')
@pass_app
def stake(app: LedgerCLI, account: str, amount: str, raw: bool):
    """Stake AMOUNT tokens from ACCOUNT."""
    ledger = app.load_ledger()
    decimals = ledger.staked_token.decimals
    value = parse_amount(amount, decimals, raw)
    try:
        record = ledger.stake(account, value)
    except StakingError as e:
        fail(e)
    app.save(ledger)
    click.echo(f"Staked {format_amount(value, decimals)}; now staking {format_amount(record.amount_staked, decimals)}")
    click.echo(f"Unstake or restake available after {format_time(record.last_stake_time + LOCK_PERIOD)}")


@cli.command()
@click.argument('account')
@pass_app
def unstake(app: LedgerCLI, account: str):
    """Withdraw ACCOUNT's whole stake."""
    ledger = app.load_ledger()
    try:
        amount = ledger.unstake(account)
    except StakingError as e:
        fail(e)
    app.save(ledger)
    click.echo(f"Unstaked {format_amount(amount, ledger.staked_token.decimals)}")


@cli.command('update-reward')
@click.argument('account')
@pass_app
def update_reward(app: LedgerCLI, account: str):
    """Accrue ACCOUNT's rewards for the elapsed days."""
    ledger = app.load_ledger()
    try:
        rewards = ledger.update_reward(account)
    except StakingError as e:
        fail(e)
    app.save(ledger)
    decimals = ledger.staked_token.decimals
    pending = ledger.get_stake_record(account).pending_rewards
    click.echo(f"Accrued {format_amount(rewards, decimals)}; pending {format_amount(pending, decimals)}")


@cli.command()
@click.argument('account')
@pass_app
def claim(app: LedgerCLI, account: str):
    """Claim ACCOUNT's pending rewards."""
    ledger = app.load_ledger()
    try:
        amount = ledger.claim_reward(account)
    except StakingError as e:
        fail(e)
    app.save(ledger)
    click.echo(f"Claimed {format_amount(amount, ledger.staked_token.decimals)}")


@cli.command()
@click.argument('account')
@pass_app
def restake(app: LedgerCLI, account: str):
    """Stake ACCOUNT's pending rewards together with the principal."""
    ledger = app.load_ledger()
    try:
        new_amount = ledger.restake(account)
    except StakingError as e:
        fail(e)
    app.save(ledger)
    click.echo(f"Restaked; now staking {format_amount(new_amount, ledger.staked_token.decimals)}")


@cli.command()
@click.argument('account')
@pass_app
def view(app: LedgerCLI, account: str):
    """View ACCOUNT's stake record."""
    ledger = app.load_ledger()
    record = ledger.get_stake_record(account)
    decimals = ledger.staked_token.decimals
    click.echo(f"\nStake Details for {account}:")
    click.echo("-" * 60)
    click.echo(f"Amount Staked:    {format_amount(record.amount_staked, decimals)}")
    click.echo(f"Pending Rewards:  {format_amount(record.pending_rewards, decimals)}")
    click.echo(f"Last Reward:      {format_amount(record.last_reward, decimals)}")
    click.echo(f"Rewards Updated:  {'yes' if record.rewards_updated else 'no'}")
    click.echo(f"First Stake:      {format_time(record.first_stake_time)}")
    click.echo(f"Last Stake:       {format_time(record.last_stake_time)}")
    click.echo(f"Last Update:      {format_time(record.last_update_time)}")


@cli.command()
@click.option('--account', help='Only show events of this account')
@click.option('--limit', default=10, help='Number of events to show')
@pass_app
def events(app: LedgerCLI, account: Optional[str], limit: int):
    """Show recent ledger events, newest first."""
    ledger = app.load_ledger()
    decimals = ledger.staked_token.decimals
    if account:
        entries = list(reversed(ledger.events.for_participant(account)))[:limit]
    else:
        entries = ledger.events.recent(limit)
    if not entries:
        click.echo("No events found")
        return

    click.echo(f"{'Time':<22}{'Event':<16}{'Account':<30}{'Value':<20}")
    click.echo("-" * 88)
    for event in entries:
        value = event.value if isinstance(event.value, bool) else format_amount(event.value, decimals)
        click.echo(f"{format_time(event.timestamp):<22}{event.name:<16}{event.participant:<30}{str(value):<20}")


if __name__ == "__main__":
    cli()
