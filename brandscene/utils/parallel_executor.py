"""Parallel Executor - settle-all thread pool for scenes and candidate generation."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional

from brandscene.core.config import Settings


class ParallelExecutor:
    """Runs independent tasks with controlled concurrency and never lets one failure cancel the others."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize parallel executor.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.max_parallel_scenes = settings.max_parallel_scenes

    def execute_batch(
        self,
        tasks: list[Callable[[], Any]],
        task_names: Optional[list[str]] = None,
        max_workers: Optional[int] = None,
    ) -> list[tuple[Any, Optional[Exception]]]:
        """
        Execute a batch of tasks in parallel and wait for all of them to settle.

        Args:
            tasks: List of callable tasks to execute
            task_names: Optional list of task names for logging
            max_workers: Maximum number of parallel workers (defaults to max_parallel_scenes)

        Returns:
            List of (result, exception) tuples in task order
        """
        if not tasks:
            return []

        max_workers = max_workers or self.max_parallel_scenes

        if max_workers == 1:
            self.logger.info("Sequential execution mode (max_workers=1)")
            results = []
            for i, task in enumerate(tasks):
                task_name = self._task_name(task_names, i)
                start_time = time.time()
                try:
                    result = task()
                    elapsed = time.time() - start_time
                    self.logger.info(f"✅ {task_name} completed in {elapsed:.2f}s")
                    results.append((result, None))
                except Exception as e:
                    elapsed = time.time() - start_time
                    self.logger.error(f"❌ {task_name} failed after {elapsed:.2f}s: {e}")
                    results.append((None, e))
            return results

        self.logger.info(f"Parallel execution mode: {len(tasks)} tasks with max {max_workers} workers")
        start_time = time.time()
        results: list[tuple[Any, Optional[Exception]]] = [(None, None)] * len(tasks)
        completed_count = 0

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {}
            for i, task in enumerate(tasks):
                future = executor.submit(task)
                future_to_index[future] = (i, self._task_name(task_names, i))

            for future in as_completed(future_to_index):
                index, task_name = future_to_index[future]
                completed_count += 1
                try:
                    result = future.result()
                    elapsed = time.time() - start_time
                    self.logger.info(
                        f"✅ {task_name} completed ({completed_count}/{len(tasks)}) in {elapsed:.2f}s"
                    )
                    results[index] = (result, None)
                except Exception as e:
                    elapsed = time.time() - start_time
                    self.logger.error(
                        f"❌ {task_name} failed ({completed_count}/{len(tasks)}) after {elapsed:.2f}s: {e}"
                    )
                    results[index] = (None, e)

        total_elapsed = time.time() - start_time
        successful = sum(1 for _, error in results if error is None)
        self.logger.info(
            f"Batch complete: {successful}/{len(tasks)} successful in {total_elapsed:.2f}s "
            f"(parallelism: {max_workers} workers)"
        )

        return results

    @staticmethod
    def _task_name(task_names: Optional[list[str]], index: int) -> str:
        return task_names[index] if task_names and index < len(task_names) else f"task_{index + 1}"


class CandidateSelector:
    """Generates several candidates concurrently and picks a winner."""

    def __init__(self, settings: Settings, logger: Any, executor: Optional[ParallelExecutor] = None):
        self.settings = settings
        self.logger = logger
        self.executor = executor or ParallelExecutor(settings, logger)

    def generate_and_select(
        self,
        tasks: list[Callable[[], Any]],
        scorer: Optional[Callable[[list[Any]], int]] = None,
    ) -> Optional[Any]:
        """
        Run candidate generations, then select one of the successful results.

        Every task is allowed to settle. The scorer receives the successful
        candidates and returns the index of the winner; if it raises or returns
        an out-of-range index, the first successful candidate is used.

        Args:
            tasks: Candidate generation callables
            scorer: Optional selection function over successful candidates

        Returns:
            The selected candidate, or None if every generation failed
        """
        outcomes = self.executor.execute_batch(
            tasks,
            task_names=[f"candidate_{i + 1}" for i in range(len(tasks))],
            max_workers=min(self.settings.max_parallel_candidates, max(len(tasks), 1)),
        )
        successes = [result for result, error in outcomes if error is None]

        if not successes:
            self.logger.warning(f"All {len(tasks)} candidate generations failed")
            return None

        if scorer is None or len(successes) == 1:
            return successes[0]

        try:
            index = scorer(successes)
        except Exception as e:
            self.logger.warning(f"Candidate scoring failed, using first successful candidate: {e}")
            return successes[0]

        if not isinstance(index, int) or not 0 <= index < len(successes):
            self.logger.warning(f"Candidate scorer returned invalid index {index!r}, using first candidate")
            return successes[0]

        self.logger.info(f"Selected candidate {index + 1}/{len(successes)}")
        return successes[index]
