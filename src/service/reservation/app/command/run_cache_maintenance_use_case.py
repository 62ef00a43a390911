from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.i_distributed_lock import ILock
from src.service.reservation.app.dto import MaintenanceResult
from src.service.reservation.app.interface import ICacheManager, IClock, ILessonCommandRepo


class RunCacheMaintenanceUseCase:
    """
    Scheduled maintenance: complete past lessons, then rebuild every dataset.

    Only one process runs it at a time (a losing acquirer skips), and a full
    rebuild less than ``min_interval_seconds`` old suppresses the run unless forced.
    """

    def __init__(
        self,
        *,
        lock: ILock,
        cache_manager: ICacheManager,
        lesson_command_repo: ILessonCommandRepo,
        clock: IClock,
        lock_key: str = settings.MAINTENANCE_LOCK_KEY,
        lock_timeout_ms: int = settings.MAINTENANCE_LOCK_TIMEOUT_MS,
        min_interval_seconds: int = settings.MAINTENANCE_MIN_INTERVAL_SECONDS,
    ) -> None:
        self.lock = lock
        self.cache_manager = cache_manager
        self.lesson_command_repo = lesson_command_repo
        self.clock = clock
        self.lock_key = lock_key
        self.lock_timeout_ms = lock_timeout_ms
        self.min_interval_seconds = min_interval_seconds
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, force: bool = False) -> MaintenanceResult:
        with self.tracer.start_as_current_span(
            'use_case.run_cache_maintenance', attributes={'maintenance.force': force}
        ):
            if not await self.lock.try_acquire(key=self.lock_key, timeout_ms=self.lock_timeout_ms):
                Logger.base.info('⏭️ [MAINTENANCE] Another run holds the lock, skipping')
                return MaintenanceResult(ran=False, skipped_reason='locked')

            try:
                # ========== Step 1: Recency guard ==========
                if not force:
                    last_run_at = await self.cache_manager.get_last_full_rebuild_at()
                    now_ts = self.clock.now().timestamp()
                    if last_run_at is not None and now_ts - last_run_at < self.min_interval_seconds:
                        Logger.base.info(
                            f'⏭️ [MAINTENANCE] Rebuilt {int(now_ts - last_run_at)}s ago, skipping'
                        )
                        return MaintenanceResult(ran=False, skipped_reason='recently_rebuilt')

                # ========== Step 2: Past scheduled lessons → completed ==========
                completed_lesson_ids = await self.lesson_command_repo.complete_past_lessons(
                    before=self.clock.today().isoformat()
                )

                # ========== Step 3: Rebuild every dataset ==========
                rebuilt = await self.cache_manager.rebuild_all(
                    rebuilt_at=self.clock.now().timestamp()
                )

                Logger.base.info(
                    f'🧹 [MAINTENANCE] Completed {len(completed_lesson_ids)} lessons, '
                    f'rebuilt {len(rebuilt)} datasets'
                )
                return MaintenanceResult(
                    ran=True, completed_lesson_ids=completed_lesson_ids, rebuilt=rebuilt
                )
            finally:
                await self.lock.release(key=self.lock_key)
