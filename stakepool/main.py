"""Stake Pool CLI."""
import sys
from contextlib import contextmanager
from datetime import datetime
from typing import Optional
import click
from loguru import logger

from .config import PoolConfig, load_config
from .core.clock import ManualClock, SystemClock
from .core.errors import StakePoolError
from .core.pool import StakePool
from .core.rewards import APY_TABLE
from .core.store import load_state, save_state
from .core.token import TokenError, TokenLedger, format_amount, to_base_units


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


class StakePoolCLI:
    """Loads and saves the pool snapshot around each command."""

    def __init__(self, config: PoolConfig, now_ms: Optional[int] = None):
        self.config = config
        self.clock = ManualClock(now_ms) if now_ms is not None else SystemClock()

    def has_state(self) -> bool:
        return self.config.state_path.exists()

    @contextmanager
    def session(self, save: bool = True):
        """Yield (pool, ledger, owner_cap); persist only if the block succeeds."""
        if not self.has_state():
            logger.error(f"No pool found in {self.config.state_dir}. Run `stake-pool init OWNER` first.")
            raise click.exceptions.Exit(1)
        try:
            stored = load_state(self.config.state_path, clock=self.clock)
        except ValueError as e:
            logger.error(f"Could not load pool state: {e}")
            raise click.exceptions.Exit(1)
        try:
            yield stored
        except (StakePoolError, TokenError, ValueError) as e:
            logger.error(f"{type(e).__name__}: {e}")
            raise click.exceptions.Exit(1)
        if save:
            save_state(self.config.state_path, stored.pool, stored.ledger, stored.owner_cap)

    def amount(self, base_units: int) -> str:
        return f"{format_amount(base_units)} {self.config.token_symbol}"


def parse_amount(value: str) -> int:
    try:
        return to_base_units(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.version_option(package_name="stake-pool")
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='YAML config file')
@click.option('--state-dir', help='Directory holding the pool state')
@click.option('--log-level', help='Log level (DEBUG, INFO, ...)')
@click.option('--now-ms', type=int, help='Run against a fixed clock (ms since epoch)')
@click.pass_context
def cli(ctx, config_path: Optional[str], state_dir: Optional[str], log_level: Optional[str], now_ms: Optional[int]):
    """Stake Pool CLI for locking tokens against a fixed-term yield."""
    try:
        config = load_config(config_path)
        overrides = {k: v for k, v in {"state_dir": state_dir, "log_level": log_level}.items() if v}
        if overrides:
            config = PoolConfig(**{**config.model_dump(), **overrides})
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        raise click.exceptions.Exit(1)
    configure_logging(config.log_level)
    ctx.obj = StakePoolCLI(config, now_ms)


@cli.command()
@click.argument('owner', required=False)
@click.pass_obj
def init(app: StakePoolCLI, owner: Optional[str]):
    """Create a new pool owned by OWNER."""
    owner = owner or app.config.owner
    if not owner:
        logger.error("An owner address is required (argument or `owner` in config)")
        raise click.exceptions.Exit(1)
    if app.has_state():
        logger.error(f"A pool already exists in {app.config.state_dir}")
        raise click.exceptions.Exit(1)
    pool, owner_cap = StakePool.create(owner, clock=app.clock)
    save_state(app.config.state_path, pool, TokenLedger(), owner_cap)
    click.echo(f"Created pool owned by {owner}")


@cli.command()
@click.argument('caller')
@click.argument('account')
@click.argument('amount')
@click.pass_obj
def mint(app: StakePoolCLI, caller: str, account: str, amount: str):
    """Mint AMOUNT tokens to ACCOUNT. Only the pool owner may mint."""
    base_units = parse_amount(amount)
    with app.session() as stored:
        stored.pool.verify_owner(caller, _owner_cap(stored))
        stats = stored.pool.get_pool_stats()
        stored.ledger.mint(base_units, account, outstanding=stats.locked_principal + stats.reward_reserve)
        click.echo(f"Minted {app.amount(base_units)} to {account}")


@cli.command()
@click.argument('account')
@click.argument('amount')
@click.pass_obj
def burn(app: StakePoolCLI, account: str, amount: str):
    """Burn AMOUNT tokens held by ACCOUNT."""
    base_units = parse_amount(amount)
    with app.session() as (_, ledger, _cap):
        burned = ledger.burn(ledger.withdraw(account, base_units))
        click.echo(f"Burned {app.amount(burned)} from {account}")


@cli.command()
@click.argument('account')
@click.pass_obj
def balance(app: StakePoolCLI, account: str):
    """Show ACCOUNT's token balance."""
    with app.session(save=False) as (_, ledger, _cap):
        click.echo(f"Balance: {app.amount(ledger.balance_of(account))}")


@cli.group()
def stake():
    """Manage stakes."""
    pass


@stake.command()
@click.argument('account')
@click.argument('amount')
@click.option('--period', required=True, type=int, help='Lock period in days (30, 90, 180, 365)')
@click.pass_obj
def place(app: StakePoolCLI, account: str, amount: str, period: int):
    """Stake AMOUNT tokens from ACCOUNT for PERIOD days."""
    base_units = parse_amount(amount)
    with app.session() as (pool, ledger, _):
        coin = ledger.withdraw(account, base_units)
        record = pool.stake(account, coin, period)
        matures = datetime.fromtimestamp(record.end_time / 1000).strftime('%Y-%m-%d %H:%M')
        click.echo(f"Stake {record.id}: {app.amount(record.amount)} at {record.apy_bp / 100:.2f}% APY, matures {matures}")


@stake.command()
@click.argument('account')
@click.argument('stake_id', type=int)
@click.pass_obj
def claim(app: StakePoolCLI, account: str, stake_id: int):
    """Claim a matured stake with its reward."""
    with app.session() as (pool, ledger, _):
        payout = pool.claim(account, stake_id)
        total = payout.value
        ledger.deposit(account, payout)
        click.echo(f"Claimed stake {stake_id}: {app.amount(total)} paid to {account}")


@stake.command()
@click.argument('account')
@click.argument('stake_id', type=int)
@click.pass_obj
def unstake(app: StakePoolCLI, account: str, stake_id: int):
    """Withdraw principal early, forfeiting the reward."""
    with app.session() as (pool, ledger, _):
        payout = pool.emergency_unstake(account, stake_id)
        total = payout.value
        ledger.deposit(account, payout)
        click.echo(f"Unstaked {stake_id}: {app.amount(total)} returned, reward forfeited")


@stake.command(name='list')
@click.argument('account')
@click.pass_obj
def list_stakes(app: StakePoolCLI, account: str):
    """List ACCOUNT's stakes."""
    with app.session(save=False) as (pool, _, _cap):
        records = pool.get_user_stakes(account)
        if not records:
            click.echo(f"No stakes found for {account}")
            return

        click.echo(f"\nStakes for {account}:")
        click.echo("-" * 80)
        click.echo(f"{'ID':<6}{'Amount':<26}{'APY':<10}{'Ends':<20}{'Status':<10}")
        click.echo("-" * 80)
        now = app.clock.now_ms()
        for record in records:
            if record.claimed:
                status = "claimed"
            elif record.is_mature(now):
                status = "mature"
            else:
                status = "locked"
            ends = datetime.fromtimestamp(record.end_time / 1000).strftime('%Y-%m-%d %H:%M')
            click.echo(
                f"{record.id:<6}{app.amount(record.amount):<26}"
                f"{record.apy_bp / 100:<10.2f}{ends:<20}{status:<10}"
            )


@cli.group()
def pool():
    """Manage the pool."""
    pass


@pool.command()
@click.argument('account')
@click.argument('amount')
@click.pass_obj
def fund(app: StakePoolCLI, account: str, amount: str):
    """Add AMOUNT tokens from ACCOUNT to the reward reserve."""
    base_units = parse_amount(amount)
    with app.session() as (stake_pool, ledger, _):
        coin = ledger.withdraw(account, base_units)
        reserve = stake_pool.add_rewards(account, coin)
        click.echo(f"Reward reserve is now {app.amount(reserve)}")


@pool.command()
@click.argument('account')
@click.pass_obj
def pause(app: StakePoolCLI, account: str):
    """Block new stakes."""
    with app.session() as (stake_pool, _, _cap):
        stake_pool.pause(account)
        click.echo("Pool paused")


@pool.command()
@click.argument('account')
@click.pass_obj
def unpause(app: StakePoolCLI, account: str):
    """Allow new stakes again."""
    with app.session() as (stake_pool, _, _cap):
        stake_pool.unpause(account)
        click.echo("Pool unpaused")


@pool.command()
@click.pass_obj
def stats(app: StakePoolCLI):
    """Show pool statistics."""
    with app.session(save=False) as (stake_pool, _, _cap):
        s = stake_pool.get_pool_stats()
        click.echo("\nPool Statistics:")
        click.echo("-" * 80)
        click.echo(f"Total Staked: {app.amount(s.total_staked)}")
        click.echo(f"Locked Principal: {app.amount(s.locked_principal)}")
        click.echo(f"Reward Reserve: {app.amount(s.reward_reserve)}")
        click.echo(f"Rewards Distributed: {app.amount(s.total_rewards_distributed)}")
        click.echo(f"Last Stake ID: {s.last_stake_id}")
        click.echo(f"Paused: {s.paused}")
        click.echo(f"Owner: {s.owner}")
        click.echo(f"Admins: {', '.join(s.admins) or '-'}")


@pool.command()
@click.argument('amount')
@click.option('--period', type=int, help='Lock period in days; all periods if omitted')
@click.pass_obj
def quote(app: StakePoolCLI, amount: str, period: Optional[int]):
    """Show the reward AMOUNT would earn."""
    base_units = parse_amount(amount)
    with app.session(save=False) as (stake_pool, _, _cap):
        periods = [period] if period is not None else [int(p) for p in APY_TABLE]
        for days in periods:
            reward = stake_pool.calculate_reward(base_units, days)
            click.echo(f"{days:>4} days: {app.amount(reward)}")


@cli.group()
def admin():
    """Manage admins and ownership (acts as the current owner)."""
    pass


def _owner_cap(stored):
    if stored.owner_cap is None:
        raise click.ClickException("No owner capability stored with this pool")
    return stored.owner_cap


@admin.command()
@click.argument('new_admin')
@click.pass_obj
def grant(app: StakePoolCLI, new_admin: str):
    """Grant admin rights to NEW_ADMIN."""
    with app.session() as stored:
        cap = _owner_cap(stored)
        stored.pool.grant_admin(cap.holder, cap, new_admin)
        click.echo(f"{new_admin} is now an admin")


@admin.command()
@click.argument('address')
@click.pass_obj
def revoke(app: StakePoolCLI, address: str):
    """Revoke ADDRESS's admin rights."""
    with app.session() as stored:
        cap = _owner_cap(stored)
        stored.pool.revoke_admin(cap.holder, cap, address)
        click.echo(f"{address} is no longer an admin")


@admin.command()
@click.argument('new_owner')
@click.pass_obj
def transfer(app: StakePoolCLI, new_owner: str):
    """Transfer pool ownership to NEW_OWNER."""
    with app.session() as stored:
        cap = _owner_cap(stored)
        stored.pool.transfer_owner(cap.holder, cap, new_owner)
        click.echo(f"Ownership transferred to {new_owner}")


if __name__ == "__main__":
    cli()
