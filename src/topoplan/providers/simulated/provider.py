"""In-process provider that simulates resource lifecycles."""
import hashlib
import json
import threading
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

from topoplan.domain.base.exceptions import DomainException
from topoplan.domain.base.ports.provider_port import ProviderPort
from topoplan.domain.resource.kind import KindCatalog
from topoplan.infrastructure.logging.logger import get_logger
from topoplan.infrastructure.persistence.components import FileManager

from .config import SimulatedProviderConfig


class SimulatedProviderError(DomainException):
    """Raised by the simulated provider for injected or invalid operations."""


class SimulatedProvider(ProviderPort):
    """
    Provider that keeps an inventory of resources instead of calling an API.

    Physical ids are derived from the kind, the logical id and a per-id
    generation counter, so the same sequence of calls always yields the same
    ids and a replaced resource gets a new one. Declared outputs are filled
    from, in order: ``id`` / ``arn`` conventions, a scalar property of the
    same name, or ``<physical id>.<output>``.
    """

    def __init__(self, config: Optional[SimulatedProviderConfig] = None,
                 catalog: Optional[KindCatalog] = None):
        self.config = config or SimulatedProviderConfig()
        self.catalog = catalog or KindCatalog()
        self.logger = get_logger(__name__)
        self.calls: List[Tuple[str, str]] = []
        self._lock = threading.RLock()
        self._inventory: Dict[str, Dict[str, Any]] = {}
        self._generations: Dict[str, int] = {}
        self._file_manager: Optional[FileManager] = None

        if self.config.persist_path:
            self._file_manager = FileManager(self.config.persist_path, backup_count=0)
            self._load_inventory()

    def resolve(self, kind: str, logical_id: str) -> Optional[Dict[str, str]]:
        with self._lock:
            item = self._inventory.get(logical_id)
            if item is None or item["kind"] != kind:
                return None
            return dict(item["outputs"])

    def apply(
        self,
        action: str,
        kind: str,
        logical_id: str,
        properties: Mapping[str, Any],
        resolved_references: Mapping[str, Any],
        prior_outputs: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        with self._lock:
            self.calls.append((action, logical_id))
        self._check_injected_failure(action, logical_id)

        if self.config.delay_seconds:
            time.sleep(self.config.delay_seconds)

        with self._lock:
            if action == "create":
                outputs = self._create(kind, logical_id, properties)
            elif action == "update":
                outputs = self._update(kind, logical_id, properties)
            elif action == "delete":
                outputs = self._delete(logical_id)
            else:
                raise SimulatedProviderError(f"Unsupported action '{action}'", "UNSUPPORTED_ACTION")
            self._save_inventory()

        self.logger.info(f"Simulated {action} of {kind} {logical_id}")
        return outputs

    def inventory(self) -> Dict[str, Dict[str, Any]]:
        """Snapshot of the simulated resources keyed by logical id."""
        with self._lock:
            return json.loads(json.dumps(self._inventory))

    def get_provider_info(self) -> Dict[str, Any]:
        info = super().get_provider_info()
        info.update({
            "type": "simulated",
            "resources": len(self._inventory),
            "persist_path": self.config.persist_path,
        })
        return info

    def _check_injected_failure(self, action: str, logical_id: str) -> None:
        if logical_id in self.config.fail_on or f"{logical_id}:{action}" in self.config.fail_on:
            raise SimulatedProviderError(
                f"Injected failure for {action} of {logical_id}",
                "INJECTED_FAILURE",
                {"action": action, "logical_id": logical_id},
            )

    def _create(self, kind: str, logical_id: str, properties: Mapping[str, Any]) -> Dict[str, str]:
        if logical_id in self._inventory:
            self.logger.warning(f"Orphaning previous {kind} {logical_id} (retained resource was replaced)")
        generation = self._generations.get(logical_id, 0) + 1
        self._generations[logical_id] = generation
        physical_id = self._physical_id(kind, logical_id, generation)
        outputs = self._outputs(kind, physical_id, properties)
        self._inventory[logical_id] = {
            "kind": kind,
            "physical_id": physical_id,
            "generation": generation,
            "properties": json.loads(json.dumps(dict(properties), default=str)),
            "outputs": outputs,
        }
        return dict(outputs)

    def _update(self, kind: str, logical_id: str, properties: Mapping[str, Any]) -> Dict[str, str]:
        item = self._inventory.get(logical_id)
        if item is None:
            raise SimulatedProviderError(
                f"Resource {logical_id} does not exist",
                "NOT_FOUND",
                {"logical_id": logical_id},
            )
        item["properties"] = json.loads(json.dumps(dict(properties), default=str))
        item["outputs"] = self._outputs(kind, item["physical_id"], properties)
        return dict(item["outputs"])

    def _delete(self, logical_id: str) -> Dict[str, str]:
        if self._inventory.pop(logical_id, None) is None:
            self.logger.debug(f"Delete of unknown resource {logical_id} ignored")
        return {}

    def _physical_id(self, kind: str, logical_id: str, generation: int) -> str:
        digest = hashlib.sha256(f"{kind}/{logical_id}/{generation}".encode("utf-8")).hexdigest()[:12]
        slug = kind.replace(".", "-").replace("_", "-").lower()
        return f"{self.config.id_prefix}-{slug}-{digest}"

    def _outputs(self, kind: str, physical_id: str, properties: Mapping[str, Any]) -> Dict[str, str]:
        declared = self.catalog.find(kind)
        names = sorted(declared.outputs) if declared else []
        outputs = {"id": physical_id}
        for name in names:
            if name == "id":
                continue
            if name == "arn":
                outputs[name] = f"arn:{self.config.id_prefix}:{kind}:{physical_id}"
            elif isinstance(properties.get(name), (str, int, float, bool)):
                outputs[name] = str(properties[name])
            else:
                outputs[name] = f"{physical_id}.{name}"
        return outputs

    def _load_inventory(self) -> None:
        content = self._file_manager.read_file()
        if not content.strip():
            return
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise SimulatedProviderError(
                f"Simulated inventory {self.config.persist_path} is not valid JSON: {e}"
            ) from e
        self._inventory = data.get("resources", {})
        self._generations = {k: int(v) for k, v in data.get("generations", {}).items()}
        self.logger.debug(f"Loaded {len(self._inventory)} simulated resources")

    def _save_inventory(self) -> None:
        if self._file_manager is None:
            return
        document = {"resources": self._inventory, "generations": self._generations}
        self._file_manager.write_file(json.dumps(document, indent=2, sort_keys=True) + "\n")
