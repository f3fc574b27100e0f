"""
Explicitly owned application state passed to every CLI action.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional

from hive.assistants.manager import AssistantManager
from hive.chat.history import ThreadHistoryReconciler
from hive.chat.run_monitor import RunCompletionMonitor
from hive.client.openai_client import AssistantServiceClient
from hive.knowledge.honeycomb_manager import HoneycombManager
from hive.models.assistant import Assistant
from hive.models.config import AppConfig
from hive.storage.json_store import AssistantStore, HoneycombStore, create_stores


@dataclass
class HiveContext:
    """Everything a CLI session works with."""
    config: AppConfig
    service: AssistantServiceClient
    assistant_store: AssistantStore
    honeycomb_store: HoneycombStore
    assistants: AssistantManager
    honeycombs: HoneycombManager
    sleep: Callable[[float], None] = time.sleep

    def run_monitor(self) -> RunCompletionMonitor:
        return RunCompletionMonitor(self.service, self.config.run_polling, sleep=self.sleep)

    def reconciler(self, assistant: Assistant, thread_id: str) -> ThreadHistoryReconciler:
        return ThreadHistoryReconciler(
            self.service,
            self.assistant_store,
            assistant,
            thread_id,
            monitor=self.run_monitor(),
        )


def build_context(
    config: AppConfig,
    service: Optional[AssistantServiceClient] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> HiveContext:
    """
    Wire the stores, client and managers together.

    Args:
        config: Application configuration
        service: Remote service client; built from config.openai if omitted
        sleep: Suspension function used by poll loops

    Returns:
        A ready context
    """
    service = service or AssistantServiceClient(config.openai)
    assistant_store, honeycomb_store = create_stores(config.storage)
    return HiveContext(
        config=config,
        service=service,
        assistant_store=assistant_store,
        honeycomb_store=honeycomb_store,
        assistants=AssistantManager(service, assistant_store),
        honeycombs=HoneycombManager(
            service,
            honeycomb_store,
            config.knowledge,
            config.batch_polling,
            sleep=sleep,
        ),
        sleep=sleep,
    )
