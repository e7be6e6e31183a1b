"""Dispatcher — turns one request into one response.

States, in order::

    ROUTING → CONTROLLER_RESOLVED → SESSION_PRIMED → PRE_DISPATCH
        → ACTION_RUNNING → POST_DISPATCH → RESPONSE_FINALIZED

Any failure after routing moves to ``ERROR``, which always renders a page
(configured template, conventional template, or inline body) with the
matching status. Route misses never raise: they dispatch to the error
controller's not-found action and finish with 404.

The session mirror is reconciled onto the transport session after the
post-dispatch hook and before the response is built, then the transport
session is saved once.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import anyio

from roost._internal.invoke import invoke
from roost._internal.naming import action_method
from roost.config import AppConfig
from roost.context import _dispatch_context
from roost.dispatch.context import (
    DispatchContext,
    DispatchRequest,
    DispatchResponse,
    DispatchState,
)
from roost.dispatch.registry import ERROR_CONTROLLER, ControllerRegistry
from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.mvc.controller import BaseController, ErrorController
from roost.services.container import ScopedContainer, ServiceContainer
from roost.session.mirror import SessionMirror, SharedMirror
from roost.session.transport import TransportSession
from roost.view.manager import inline_error_body
from roost.view.model import ViewModel

logger = logging.getLogger("roost.dispatch")

NOT_FOUND_ACTION = "not-found"


class Dispatcher:
    """Runs the controller lifecycle for each request.

    Usage::

        dispatcher = Dispatcher(container, registry, settings)
        response = await dispatcher.dispatch(request, session)
    """

    __slots__ = ("container", "registry", "settings", "shared_mirror")

    def __init__(
        self,
        container: ServiceContainer,
        registry: ControllerRegistry,
        settings: AppConfig | None = None,
    ) -> None:
        self.container = container
        self.registry = registry
        self.settings = settings or container.settings
        self.shared_mirror: SharedMirror | None = (
            SharedMirror() if self.settings.shared_session_mirror else None
        )

    # -- Entry point --

    async def dispatch(self, request: Request, session: TransportSession | None = None) -> Response:
        context = await self._create_context(request)
        token = _dispatch_context.set(context)
        try:
            try:
                with anyio.fail_after(self.settings.request_timeout):
                    await self._run(context, session)
                    return self._finalize(context)
            except TimeoutError as exc:
                logger.error(
                    "%s %s exceeded the %ss request deadline",
                    request.method,
                    request.path,
                    self.settings.request_timeout,
                )
                return self._error(context, 500, "The request took too long to complete.", exc)
            except HTTPError as exc:
                if exc.status >= 500:
                    logger.exception("%s %s failed with %d", request.method, request.path, exc.status)
                return self._error(context, exc.status, exc.detail or None, exc, headers=exc.headers)
            except Exception as exc:
                logger.exception(
                    "Unhandled error dispatching %s %s (state: %s)",
                    request.method,
                    request.path,
                    context.state.value if context.state else "start",
                )
                return self._error(context, 500, None, exc)
        finally:
            _dispatch_context.reset(token)

    async def _create_context(self, request: Request) -> DispatchContext:
        mirror = self.shared_mirror if self.shared_mirror is not None else SessionMirror()
        dispatch_request = DispatchRequest(
            method=request.method,
            path=request.path,
            url=request.url,
            query=request.query.to_dict(),
            post=await request.post(),
            headers=request.headers,
            transport=request,
        )
        context = DispatchContext(
            request=dispatch_request,
            response=DispatchResponse(),
            session_mirror=mirror,
        )
        context.container = ScopedContainer(self.container, context)
        return context

    # -- Lifecycle --

    async def _run(self, context: DispatchContext, session: TransportSession | None) -> None:
        request = context.request

        context.transition(DispatchState.ROUTING)
        match = self.container.get("RouteTable").match(request.path)
        context.route_match = match
        if match is None:
            logger.debug("No route matches %s", request.path)
            context.not_found = True
            request.module, request.controller = ERROR_CONTROLLER
            request.action = NOT_FOUND_ACTION
        else:
            request.module = match.module
            request.controller = match.controller
            request.action = match.action
            request.route_name = match.route_name
            request.route_path = match.entry.pattern
            request.params = dict(match.params)

        context.transition(DispatchState.CONTROLLER_RESOLVED)
        cls = self.registry.resolve(request.module, request.controller)
        if cls is None:
            logger.warning("No controller for %s/%s; answering 404", request.module, request.controller)
            context.not_found = True
            cls = ErrorController
        controller = cls(context.container)
        context.controller = controller

        action = None
        if not context.not_found:
            action = getattr(controller, action_method(request.action), None)
            if not callable(action):
                logger.debug(
                    "%s has no action %s", type(controller).__name__, action_method(request.action)
                )
                context.not_found = True
                action = None
        if action is None:
            action = controller.not_found_action

        context.transition(DispatchState.SESSION_PRIMED)
        request.session = session
        context.session_mirror.prime(session)
        controller.prepare_view()

        context.transition(DispatchState.PRE_DISPATCH)
        await invoke(controller.pre_dispatch)

        result: Any = None
        if context.response.redirect or not request.dispatched:
            logger.debug("pre_dispatch of %s skipped the action", type(controller).__name__)
        else:
            context.transition(DispatchState.ACTION_RUNNING)
            result = await invoke(action)

        context.transition(DispatchState.POST_DISPATCH)
        self._apply_result(controller, result)
        await invoke(controller.post_dispatch)

    def _apply_result(self, controller: BaseController, result: Any) -> None:
        if isinstance(result, ViewModel):
            controller.set_view(result)
        elif isinstance(result, Mapping):
            controller.get_view().set_variables(result)
        elif result is not None and not isinstance(result, DispatchResponse):
            msg = (
                f"{type(controller).__name__} action returned {type(result).__name__}; "
                "expected a ViewModel, a mapping, or None."
            )
            raise TypeError(msg)

    # -- Finalization --

    def _finalize(self, context: DispatchContext) -> Response:
        context.transition(DispatchState.RESPONSE_FINALIZED)
        self._persist_session(context)

        response = context.response
        if response.redirect:
            headers = dict(response.headers)
            return Response(status=response.status or 302).with_headers(headers)

        controller = context.controller
        assert controller is not None
        view = controller.get_view()
        status = view.resolved_status or response.status or (404 if context.not_found else 200)
        if view.template is None and status < 400:
            view.set_template(controller.get_view_script())

        body = self.container.get("ViewManager").render(view, controller.render_context())
        return Response(body=body, status=status).with_headers(response.headers)

    def _persist_session(self, context: DispatchContext) -> None:
        mirror = context.session_mirror
        if mirror.transport is None:
            return
        failed = mirror.reconcile()
        if failed:
            logger.warning("Session namespaces not synced: %s", ", ".join(failed))
        mirror.save()

    def _error(
        self,
        context: DispatchContext,
        status: int,
        message: str | None,
        error: BaseException,
        *,
        headers: tuple[tuple[str, str], ...] = (),
    ) -> Response:
        context.transition(DispatchState.ERROR)
        context.error = error
        try:
            self._persist_session(context)
        except Exception:
            logger.exception("Session reconciliation failed while handling an error")

        if 300 <= status < 400:
            return Response(status=status, headers=headers)

        try:
            view_manager = self.container.get("ViewManager")
        except Exception:
            logger.exception("View manager unavailable; sending the inline error page")
            body = inline_error_body(status, message)
            return Response(body=body, status=status, headers=headers)

        extra = self._error_context(context)
        body = view_manager.render_error(status, message, error, extra)
        return Response(body=body, status=status, headers=headers)

    def _error_context(self, context: DispatchContext) -> dict[str, Any]:
        request = context.request
        extra: dict[str, Any] = {
            "module_name": request.module,
            "controller_name": request.controller,
            "action_name": request.action,
            "route_name": request.route_name,
            "is_authenticated": False,
        }
        if context.controller is not None:
            try:
                extra.update(context.controller.render_context())
            except Exception:
                logger.warning("Helpers unavailable for the error page", exc_info=True)
        return extra
