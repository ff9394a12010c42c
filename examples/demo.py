#!/usr/bin/env python3
"""Demo: Using smite as a Python library.

This shows how to drive the batch scheduler and the search router
programmatically, not just through the CLI.
"""

from pathlib import Path

from smite.ralph import BatchScheduler, WorkItem, WorkItemGraph
from smite.search import SearchOptions, SearchRouter, SearchStrategy


def main():
    # 1. Plan a small piece of work
    items = [
        WorkItem(id="US-001", title="Schema", priority=8),
        WorkItem(id="US-002", title="API", dependencies=["US-001"], priority=5),
        WorkItem(id="US-003", title="UI", dependencies=["US-001"], priority=5),
        WorkItem(id="US-004", title="E2E tests", dependencies=["US-002", "US-003"], priority=3),
    ]
    scheduler = BatchScheduler(WorkItemGraph(items))

    print("--- Plan ---")
    for batch in scheduler.generate_batches():
        mode = "parallel" if batch.parallel else "sequential"
        print(f"  Batch {batch.number} ({mode}): {', '.join(batch.ids)}")
    print()
    print(scheduler.visualize())

    # 2. Drive it like a harness would, one round at a time
    print("\n--- Execution ---")
    batch = scheduler.next_batch()
    while batch is not None:
        print(f"  Running batch {batch.number}: {', '.join(batch.ids)}")
        batch = scheduler.advance(batch.ids)

    # 3. Search this repository
    router = SearchRouter(Path("."))
    for query in ["BatchScheduler", "how are work items scheduled?"]:
        response = router.search(query)
        print(f"\n--- '{query}' via {response.strategy.value} ---")
        if not response.success:
            print(f"  failed: {response.error}")
            continue
        for r in response.results[:5]:
            print(f"  {r.file_path}:{r.line_number} ({r.score:.2f}) {r.content.strip()}")

    # The same question again is answered from the semantic cache
    response = router.search("how are the work items scheduled?")
    print(f"\nfrom_cache={response.from_cache}")

    literal = router.search("def plan", SearchOptions(strategy=SearchStrategy.LITERAL, max_results=3))
    print(f"literal hits: {literal.result_count}")
    print(f"cache: {router.cache_stats()}")


if __name__ == "__main__":
    main()
