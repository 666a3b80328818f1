"""
===============================================================================
TARJETA CRC — application/audit/recorder.py (Grabador de auditoría)
===============================================================================

Responsabilidades:
  - Construir AuditEntry desde un ActionContext (actor, acción, entidad,
    descripción generada, snapshots sanitizados).
  - Escribir vía AuditLogRepository, en background (executor) o inline.
    El hilo de escritura corre con una copia del contexto del request.
  - “Best-effort”: ninguna falla (build, sanitize, store) llega al caller.
  - Helpers de conveniencia: log_create / log_update / log_delete / ...

Colaboradores:
  - domain.audit (ActionContext, AuditEntry, enums)
  - domain.repositories.AuditLogRepository
  - application/audit/sanitizer.py, application/audit/descriptions.py

Ciclo de vida:
  - Se construye una vez por proceso (container.py) y se inyecta.
  - flush(): espera escrituras pendientes. shutdown(): drena y libera hilos.

Reglas:
  - Llamar record() SÓLO después de que el efecto de negocio se confirmó.
  - El único canal de error del recorder es el logger.
===============================================================================
"""

from __future__ import annotations

import contextvars
import logging
import threading
from concurrent.futures import Executor, Future, wait
from typing import Any, Iterable, Optional

from ...domain.audit import (
    ActionContext,
    AuditAction,
    AuditActor,
    AuditEntity,
    AuditEntry,
)
from ...domain.repositories import AuditLogRepository
from .descriptions import build_description, role_change_description
from .sanitizer import sanitize

logger = logging.getLogger(__name__)


class AuditRecorder:
    """
    Fachada de escritura de auditoría.

    Con executor=None escribe inline (tests / scripts); con executor la
    escritura es fire-and-forget y su error sólo va al log.
    """

    def __init__(
        self,
        repository: AuditLogRepository,
        executor: Optional[Executor] = None,
    ):
        self._repository = repository
        self._executor = executor
        self._pending: set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # API principal
    # ------------------------------------------------------------------
    def record(self, ctx: ActionContext) -> None:
        """Registra una acción. Nunca levanta excepción."""
        try:
            entry = self.build_entry(ctx)
        except Exception as exc:
            logger.error(
                "No se pudo construir la entrada de auditoría",
                extra={"action": str(ctx.action), "error": str(exc)},
            )
            return

        if entry is None:
            return

        if self._executor is None or self._closed:
            self._write(entry)
            return

        try:
            future = self._executor.submit(
                contextvars.copy_context().run, self._write, entry
            )
        except RuntimeError as exc:
            # executor ya cerrado: se escribe inline
            logger.warning(
                "Executor de auditoría no disponible, escritura inline",
                extra={"error": str(exc)},
            )
            self._write(entry)
            return

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._on_done)

    def build_entry(self, ctx: ActionContext) -> Optional[AuditEntry]:
        """
        Arma la entrada o devuelve None si action/entity faltan o son inválidos.
        """
        action = AuditAction.parse(ctx.action)
        entity = AuditEntity.parse(ctx.entity)
        if action is None or entity is None:
            logger.warning(
                "Auditoría omitida: action/entity ausente o inválido",
                extra={"action": str(ctx.action), "entity": str(ctx.entity)},
            )
            return None

        before = sanitize(ctx.changes_before) if ctx.changes_before is not None else None
        after = sanitize(ctx.changes_after) if ctx.changes_after is not None else None
        metadata = sanitize(ctx.metadata) if ctx.metadata else None

        entity_id = str(ctx.entity_id) if ctx.entity_id not in (None, "") else None
        description = (ctx.description or "").strip() or build_description(
            action,
            entity,
            entity_id,
            after if after is not None else before,
        )

        actor = ctx.actor or AuditActor()
        return AuditEntry(
            action=action,
            entity=entity,
            description=description,
            entity_id=entity_id,
            user_id=actor.user_id,
            user_email=actor.email,
            user_name=actor.name,
            user_lastname=actor.lastname,
            user_roles=tuple(actor.roles),
            changes_before=before,
            changes_after=after,
            user_agent=ctx.user_agent,
            ip=ctx.ip,
            url=ctx.url,
            metadata=metadata if isinstance(metadata, dict) else None,
        )

    # ------------------------------------------------------------------
    # Helpers de conveniencia
    # ------------------------------------------------------------------
    def log_create(
        self,
        entity: AuditEntity | str,
        entity_id: Any,
        data: Any,
        *,
        actor: Optional[AuditActor] = None,
        **context: Any,
    ) -> None:
        self.record(
            ActionContext(
                action=AuditAction.CREATE,
                entity=entity,
                entity_id=_as_id(entity_id),
                actor=actor,
                changes_after=data,
                **context,
            )
        )

    def log_update(
        self,
        entity: AuditEntity | str,
        entity_id: Any,
        before: Any,
        after: Any,
        *,
        actor: Optional[AuditActor] = None,
        **context: Any,
    ) -> None:
        self.record(
            ActionContext(
                action=AuditAction.UPDATE,
                entity=entity,
                entity_id=_as_id(entity_id),
                actor=actor,
                changes_before=before,
                changes_after=after,
                **context,
            )
        )

    def log_delete(
        self,
        entity: AuditEntity | str,
        entity_id: Any,
        before: Any,
        *,
        actor: Optional[AuditActor] = None,
        **context: Any,
    ) -> None:
        self.record(
            ActionContext(
                action=AuditAction.DELETE,
                entity=entity,
                entity_id=_as_id(entity_id),
                actor=actor,
                changes_before=before,
                **context,
            )
        )

    def log_restore(
        self,
        entity: AuditEntity | str,
        entity_id: Any,
        after: Any,
        *,
        actor: Optional[AuditActor] = None,
        **context: Any,
    ) -> None:
        self.record(
            ActionContext(
                action=AuditAction.RESTORE,
                entity=entity,
                entity_id=_as_id(entity_id),
                actor=actor,
                changes_after=after,
                **context,
            )
        )

    def log_auth(
        self,
        description: str,
        *,
        actor: Optional[AuditActor] = None,
        **context: Any,
    ) -> None:
        self.record(
            ActionContext(
                action=AuditAction.AUTH,
                entity=AuditEntity.AUTHENTICATION,
                entity_id=actor.user_id if actor else None,
                actor=actor,
                description=description,
                **context,
            )
        )

    def log_system(
        self,
        description: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
        **context: Any,
    ) -> None:
        self.record(
            ActionContext(
                action=AuditAction.SYSTEM,
                entity=AuditEntity.SYSTEM,
                description=description,
                metadata=metadata,
                **context,
            )
        )

    def log_role_change(
        self,
        target: AuditActor,
        old_roles: Iterable[str],
        new_roles: Iterable[str],
        *,
        actor: Optional[AuditActor] = None,
        **context: Any,
    ) -> None:
        """target = usuario cuyos roles cambiaron; actor = quien los cambió."""
        self.record(
            ActionContext(
                action=AuditAction.ROLE_CHANGE,
                entity=AuditEntity.ROLES,
                entity_id=target.user_id,
                actor=actor,
                description=role_change_description(
                    target.email, target.name, target.lastname
                ),
                changes_before={"roles": list(old_roles)},
                changes_after={"roles": list(new_roles)},
                **context,
            )
        )

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------
    def flush(self, timeout: Optional[float] = None) -> None:
        """Espera a que terminen las escrituras pendientes."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Drena (si wait) y cierra el executor. Luego escribe inline."""
        if wait:
            self.flush()
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------
    def _write(self, entry: AuditEntry) -> None:
        try:
            self._repository.append(entry)
        except Exception as exc:
            logger.error(
                "Falló la escritura de auditoría",
                extra={
                    "action": entry.action.value,
                    "entity": entry.entity.value,
                    "entity_id": entry.entity_id,
                    "error": str(exc),
                },
            )

    def _on_done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            logger.warning("Escritura de auditoría cancelada")
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Error inesperado en tarea de auditoría", extra={"error": str(exc)}
            )


def _as_id(value: Any) -> Optional[str]:
    return None if value is None else str(value)
