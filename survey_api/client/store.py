"""
Client application state.

State is immutable; every change goes through ``Store.dispatch`` and the pure
``reduce`` function, after which all subscribers are called with the new
state.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from survey_api.client.storage import TOKEN_KEY, TokenStorage
from survey_api.schemas import QUESTION_TYPES

DEFAULT_IMAGE = (
    "https://upload.wikimedia.org/wikipedia/commons/thumb/a/ac/"
    "No_image_available.svg/300px-No_image_available.svg.png"
)

# action types
SET_USER = "set_user"
LOGOUT = "logout"
SET_CURRENT_SURVEY = "set_current_survey"
SET_CURRENT_SURVEY_LOADING = "set_current_survey_loading"
SET_SURVEYS = "set_surveys"
SET_SURVEYS_LOADING = "set_surveys_loading"


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


@dataclass(frozen=True)
class AppState:
    user: Dict[str, Any] = field(default_factory=dict)
    token: Optional[str] = None
    current_survey: Optional[Dict[str, Any]] = None
    current_survey_loading: bool = False
    surveys: List[Dict[str, Any]] = field(default_factory=list)
    surveys_meta: Dict[str, Any] = field(default_factory=dict)
    surveys_loading: bool = False
    question_types: Tuple[str, ...] = QUESTION_TYPES
    default_image: str = DEFAULT_IMAGE

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


def reduce(state: AppState, action: Action) -> AppState:
    if action.type == SET_USER:
        return replace(
            state, user=action.payload["user"], token=action.payload["token"]
        )
    if action.type == LOGOUT:
        return replace(state, user={}, token=None, current_survey=None, surveys=[])
    if action.type == SET_CURRENT_SURVEY:
        return replace(state, current_survey=action.payload)
    if action.type == SET_CURRENT_SURVEY_LOADING:
        return replace(state, current_survey_loading=bool(action.payload))
    if action.type == SET_SURVEYS:
        return replace(
            state,
            surveys=action.payload.get("data", []),
            surveys_meta=action.payload.get("meta", {}),
        )
    if action.type == SET_SURVEYS_LOADING:
        return replace(state, surveys_loading=bool(action.payload))
    raise ValueError(f"Unknown action type: {action.type}")


Listener = Callable[[AppState], None]


class Store:
    def __init__(self, storage: TokenStorage):
        self.storage = storage
        self._state = AppState(token=storage.get(TOKEN_KEY))
        self._listeners: List[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> AppState:
        self._state = reduce(self._state, action)

        if action.type == SET_USER:
            self.storage.set(TOKEN_KEY, self._state.token)
        elif action.type == LOGOUT:
            self.storage.remove(TOKEN_KEY)

        for listener in list(self._listeners):
            listener(self._state)
        return self._state
