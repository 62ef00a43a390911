"""
Standalone Cache Maintenance Job Entry Point (Async)

Usage:
    PYTHONPATH=$PWD uv run python src/service/reservation/driving_adapter/cache_maintenance_job.py

Runs once by default (cron style). With MAINTENANCE_LOOP_INTERVAL_SECONDS > 0 it
keeps running on that interval until SIGINT/SIGTERM. MAINTENANCE_FORCE=true
bypasses the recency guard (the lock still applies).
"""

import os
import signal

import anyio

from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client


async def run_once(*, force: bool) -> None:
    use_case = container.run_cache_maintenance_use_case()
    result = await use_case.execute(force=force)
    if result.ran:
        Logger.base.info(
            f'🧹 [Cache Maintenance] Done: {len(result.completed_lesson_ids)} lessons completed, '
            f'{len(result.rebuilt)} datasets rebuilt'
        )
    else:
        Logger.base.info(f'⏭️ [Cache Maintenance] Skipped ({result.skipped_reason})')


async def main() -> None:
    """Main async entry point for the cache maintenance job."""
    Logger.base.info('🚀 [Cache Maintenance] Starting...')

    tracing = TracingConfig(service_name='reservation-cache-maintenance')
    tracing.setup()
    tracing.instrument_redis()

    force = os.getenv('MAINTENANCE_FORCE', 'false').lower() == 'true'
    interval = int(os.getenv('MAINTENANCE_LOOP_INTERVAL_SECONDS', '0'))

    try:
        await kvrocks_client.initialize()
        Logger.base.info('📡 [Cache Maintenance] Kvrocks initialized')
    except Exception as e:
        Logger.base.error(f'❌ [Cache Maintenance] Failed to initialize Kvrocks: {e}')
        raise

    try:
        if interval <= 0:
            await run_once(force=force)
            return

        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async with anyio.create_task_group() as tg:

                async def signal_watcher() -> None:
                    async for signum in signals:
                        Logger.base.info(f'🛑 [Cache Maintenance] Received signal {signum}')
                        tg.cancel_scope.cancel()
                        break

                tg.start_soon(signal_watcher)
                while True:
                    await run_once(force=force)
                    await anyio.sleep(interval)

    finally:
        try:
            await kvrocks_client.disconnect()
            Logger.base.info('📡 [Cache Maintenance] Kvrocks disconnected')
        except Exception as e:
            Logger.base.warning(f'⚠️ [Cache Maintenance] Error disconnecting Kvrocks: {e}')

        container.reset_singletons()
        tracing.shutdown()
        Logger.base.info('👋 [Cache Maintenance] Shutdown complete')


if __name__ == '__main__':
    anyio.run(main)
