"""
Generic request pipeline shared by every entity controller.

Each handler produces exactly one outcome: a view to render, a redirect, or
a "not supported" marker. Missing target records raise NotFoundError and
store failures propagate unchanged.
"""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

import structlog
from pydantic import BaseModel, Field, ValidationError

from utilities.logger import RequestLogger

from .errors import NotFoundError
from .models import CatalogRecord
from .parallel import Fetch, fetch_parallel
from .repository import DocumentRepository
from .validation import FormValidator, Violation

logger = structlog.get_logger(__name__)


class Render(BaseModel):
    """Render ``template`` with ``context``."""
    template: str = Field(..., description="View name without extension")
    context: Dict[str, Any] = Field(default_factory=dict, description="Data bag for the view")


class Redirect(BaseModel):
    """Redirect the client to ``url``."""
    url: str = Field(..., description="Target URL")


class NotSupported(BaseModel):
    """The operation exists in the URL space but is not available."""
    operation: str = Field(..., description="Handler name")


Outcome = Union[Render, Redirect, NotSupported]

Title = Union[str, Callable[[Dict[str, Any]], str]]
Decorator = Callable[[Dict[str, Any]], None]


class EntityForm:
    """
    Everything needed to show and process one entity's form.

    Args:
        template: Form view name
        model: Record class built from the submission
        validator: Chains applied to the submitted body
        references: Reference lists the form needs (e.g. all authors)
        decorate: Hook adjusting the view context before rendering
    """

    def __init__(
        self,
        template: str,
        model: Type[CatalogRecord],
        validator: FormValidator,
        references: Optional[Dict[str, Fetch]] = None,
        decorate: Optional[Decorator] = None,
    ):
        self.template = template
        self.model = model
        self.validator = validator
        self.references = references or {}
        self.decorate = decorate

    def build(
        self,
        values: Mapping[str, Any],
        record_id: Optional[str] = None,
        violations: Sequence[Violation] = (),
    ) -> Tuple[CatalogRecord, List[Violation]]:
        """
        Build the candidate record from sanitized values. Blank values of
        optional fields are left out so the model defaults apply.

        When the rules already reported ``violations`` the candidate is only
        assembled for redisplay. Otherwise a candidate that fails model
        validation is reported through violations, the same way as a failed rule.
        """
        fields = {
            name: values[name]
            for name, info in self.model.model_fields.items()
            if name in values and name != "id"
            and not (values[name] in (None, "") and not info.is_required())
        }
        if record_id is not None:
            fields["id"] = record_id
        if violations:
            return self.model.model_construct(**fields), list(violations)
        try:
            return self.model.model_validate(fields), []
        except ValidationError as e:
            violations = [
                Violation(
                    field=str(error["loc"][0]) if error["loc"] else "",
                    message=error["msg"],
                    value=error.get("input"),
                )
                for error in e.errors()
            ]
            return self.model.model_construct(**fields), violations


class RequestPipeline:
    """
    List, detail, form, submit and delete flows for one entity.

    The primary record is exposed to views under ``entity``; dependent and
    reference data under the names given by the caller.
    """

    def __init__(self, entity: str, repository: DocumentRepository, list_url: str):
        self.entity = entity
        self.repository = repository
        self.list_url = list_url

    def _logger(self, operation: str, **context) -> RequestLogger:
        return RequestLogger().bind_context(entity=self.entity, operation=operation, **context)

    @staticmethod
    def _title(title: Title, context: Dict[str, Any]) -> str:
        return title(context) if callable(title) else title

    def _render(self, log: RequestLogger, template: str, title: Title, context: Dict[str, Any]) -> Render:
        context = dict(context)
        context["title"] = self._title(title, context)
        log.log_render(template)
        return Render(template=template, context=context)

    def _redirect(self, log: RequestLogger, url: str) -> Redirect:
        log.log_redirect(url)
        return Redirect(url=url)

    async def _load_primary(
        self,
        log: RequestLogger,
        record_id: str,
        others: Dict[str, Fetch],
        populate: Sequence[str] = (),
    ) -> Dict[str, Any]:
        """Fetch the primary record alongside ``others``; raise if it is absent."""
        async def primary():
            return await self.repository.find_by_id(record_id, populate=populate)

        results = await fetch_parallel({self.entity: primary, **others})
        if results[self.entity] is None:
            log.log_not_found(record_id)
            raise NotFoundError(f"{self.entity.capitalize()} not found")
        return results

    async def list_view(self, template: str, title: Title, key: str, query: Fetch) -> Render:
        """Render every record returned by ``query`` under ``key``."""
        log = self._logger("list")
        records = await query()
        return self._render(log, template, title, {key: records})

    async def detail_view(
        self,
        template: str,
        title: Title,
        record_id: str,
        related: Optional[Dict[str, Fetch]] = None,
        populate: Sequence[str] = (),
    ) -> Render:
        """Render one record and its related records, fetched concurrently."""
        log = self._logger("detail", record_id=record_id)
        results = await self._load_primary(log, record_id, related or {}, populate)
        return self._render(log, template, title, results)

    async def form_view(self, form: EntityForm, title: Title, record_id: Optional[str] = None) -> Render:
        """
        Render an empty create form, or an update form filled from the stored
        record. Reference lists are fetched concurrently with the record.
        """
        log = self._logger("form", record_id=record_id)
        if record_id is None:
            context = await fetch_parallel(form.references)
        else:
            context = await self._load_primary(log, record_id, form.references)
        if form.decorate:
            form.decorate(context)
        return self._render(log, form.template, title, context)

    async def _reject(
        self,
        log: RequestLogger,
        form: EntityForm,
        title: Title,
        candidate: CatalogRecord,
        violations: List[Violation],
        record_id: Optional[str] = None,
    ) -> Render:
        if record_id is None:
            context = await fetch_parallel(form.references)
        else:
            context = await self._load_primary(log, record_id, form.references)
        context[self.entity] = candidate
        context["errors"] = violations
        if form.decorate:
            form.decorate(context)
        log.log_rejected(form.template, len(violations))
        return self._render(log, form.template, title, context)

    async def create_submit(
        self,
        form: EntityForm,
        title: Title,
        body: Mapping[str, Any],
        existing: Optional[Callable[[CatalogRecord], Awaitable[Optional[CatalogRecord]]]] = None,
    ) -> Outcome:
        """
        Validate a create submission and either re-render the form with the
        violations or insert the record and redirect to it.

        ``existing`` may return a stored record equivalent to the candidate;
        the client is then redirected there and nothing is inserted.
        """
        log = self._logger("create")
        report = form.validator.run(body)
        candidate, violations = form.build(report.values, violations=report.violations)
        if violations:
            return await self._reject(log, form, title, candidate, violations)

        if existing is not None:
            found = await existing(candidate)
            if found is not None:
                return self._redirect(log, found.url)

        saved = await self.repository.save(candidate)
        log.log_store_operation("save", True, saved.id)
        return self._redirect(log, saved.url)

    async def update_submit(self, form: EntityForm, title: Title, record_id: str, body: Mapping[str, Any]) -> Outcome:
        """
        Validate an update submission and either re-render the form with the
        violations or replace the stored record and redirect to it.

        A missing target raises NotFoundError whether or not the submission
        is valid.
        """
        log = self._logger("update", record_id=record_id)
        report = form.validator.run(body)
        candidate, violations = form.build(report.values, record_id=record_id, violations=report.violations)
        if violations:
            return await self._reject(log, form, title, candidate, violations, record_id=record_id)

        updated = await self.repository.find_by_id_and_update(record_id, candidate)
        log.log_store_operation("find_by_id_and_update", updated, record_id)
        if not updated:
            log.log_not_found(record_id)
            raise NotFoundError(f"{self.entity.capitalize()} not found")
        return self._redirect(log, candidate.url)

    async def delete_view(
        self,
        template: str,
        title: Title,
        record_id: str,
        dependents: Dict[str, Fetch],
        remove: bool,
    ) -> Outcome:
        """
        Show the delete confirmation, or with ``remove`` delete the record.

        The record and its dependents are fetched concurrently. While any
        dependent exists the confirmation view is rendered and nothing is
        removed.
        """
        log = self._logger("delete" if remove else "delete_form", record_id=record_id)
        results = await self._load_primary(log, record_id, dependents)
        blocking = sum(len(results[name]) for name in dependents)

        if not remove:
            return self._render(log, template, title, results)
        if blocking:
            log.log_dependency_block(record_id, blocking)
            return self._render(log, template, title, results)

        removed = await self.repository.find_by_id_and_remove(record_id)
        log.log_store_operation("find_by_id_and_remove", removed, record_id)
        return self._redirect(log, self.list_url)

    def not_supported(self, operation: str) -> NotSupported:
        logger.info("Operation not supported", entity=self.entity, operation=operation)
        return NotSupported(operation=operation)
