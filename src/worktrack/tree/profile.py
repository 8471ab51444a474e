"""Emits a work tree as enter/leave events for a weighted call-tree profile."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol

from pydantic import BaseModel, Field

from worktrack.exceptions import ProfileBuildError
from worktrack.tree.nodes import NOTHING_MATCHED_NAME, FileEntry, WorkTree

RenderTarget = Literal["tooltip", "details"]
Renderer = Callable[[FileEntry, RenderTarget], Any]


@dataclass(eq=False)
class FrameInfo:
    """Identity of one node as seen by the profile."""

    key: int
    name: str
    data: Dict[str, Any] = field(default_factory=dict, repr=False)


class ProfileBuilder(Protocol):
    """Consumer of an ordered enter/leave traversal.

    ``build`` returns the :class:`Profile` the importer places in its group.
    """

    def enter_frame(self, frame: FrameInfo, weight_offset: float) -> None: ...

    def leave_frame(self, frame: FrameInfo, weight_offset: float) -> None: ...

    def set_name(self, name: str) -> None: ...

    def build(self) -> "Profile": ...


class ProfileNode(BaseModel):
    """A frame with the weight interval it covers."""

    key: int = Field(..., description="Frame key")
    name: str = Field(..., description="Frame name")
    start: float = Field(..., description="Weight offset at entry")
    end: float = Field(..., description="Weight offset at exit")
    children: List["ProfileNode"] = Field(default_factory=list, description="Nested frames")

    @property
    def weight(self) -> float:
        return self.end - self.start


class Profile(BaseModel):
    """Weighted call tree built from enter/leave events."""

    name: str = Field("", description="Profile name")
    total_weight: float = Field(0, description="Weight the profile was sized for")
    roots: List[ProfileNode] = Field(default_factory=list, description="Top-level frames")


class ProfileGroup(BaseModel):
    """Profiles produced by one import."""

    name: str = Field(..., description="Group name")
    index_to_view: int = Field(0, description="Profile shown first")
    profiles: List[Profile] = Field(default_factory=list, description="Profiles in the group")


class CallTreeProfileBuilder:
    """In-memory :class:`ProfileBuilder` producing a :class:`Profile`.

    Frames are kept in ``frames`` by key so a host can reach their render
    callbacks after the build.
    """

    def __init__(self, total_weight: float = 0) -> None:
        self.total_weight = total_weight
        self.name = ""
        self.frames: Dict[int, FrameInfo] = {}
        self._roots: List[ProfileNode] = []
        self._stack: List[ProfileNode] = []
        self._last_offset = 0.0

    def _check_offset(self, weight_offset: float) -> None:
        if weight_offset < self._last_offset:
            raise ProfileBuildError(
                f"Weight offset went backwards: {weight_offset} < {self._last_offset}"
            )
        self._last_offset = weight_offset

    def enter_frame(self, frame: FrameInfo, weight_offset: float) -> None:
        self._check_offset(weight_offset)
        self.frames[frame.key] = frame
        node = ProfileNode(key=frame.key, name=frame.name, start=weight_offset, end=weight_offset)
        if self._stack:
            self._stack[-1].children.append(node)
        else:
            self._roots.append(node)
        self._stack.append(node)

    def leave_frame(self, frame: FrameInfo, weight_offset: float) -> None:
        self._check_offset(weight_offset)
        if not self._stack or self._stack[-1].key != frame.key:
            raise ProfileBuildError(f"Leaving frame {frame.name!r} that is not on top of the stack")
        self._stack.pop().end = weight_offset

    def set_name(self, name: str) -> None:
        self.name = name

    def build(self) -> Profile:
        if self._stack:
            raise ProfileBuildError(f"{len(self._stack)} frame(s) were never left")
        return Profile(name=self.name, total_weight=self.total_weight, roots=list(self._roots))


class ProfileEmitter:
    """Depth-first traversal of a work tree into a profile builder."""

    def __init__(self, builder: ProfileBuilder, renderer: Optional[Renderer] = None) -> None:
        """Initialize the emitter.

        Args:
            builder: Receives enter/leave calls
            renderer: Optional host render hook attached to every frame
        """
        self.builder = builder
        self.renderer = renderer
        self.running_weight = 0.0

    def _frame_for(self, node: FileEntry) -> FrameInfo:
        data: Dict[str, Any] = {"node": node}
        renderer = self.renderer
        if renderer is not None:
            data["render_tooltip"] = lambda: renderer(node, "tooltip")
            data["render_details"] = lambda: renderer(node, "details")
        return FrameInfo(key=node.key, name=node.name, data=data)

    def emit(self, node: FileEntry) -> None:
        frame = self._frame_for(node)
        self.builder.enter_frame(frame, self.running_weight)
        if node.children:
            for child in node.sorted_children():
                self.emit(child)
        else:
            self.running_weight += node.stats.get("weight", 0)
        self.builder.leave_frame(frame, self.running_weight)


def emit_profile(
    tree: WorkTree, builder: ProfileBuilder, renderer: Optional[Renderer] = None
) -> float:
    """Emit the whole tree into a profile builder.

    An empty tree is emitted as a single placeholder root of weight 1 so
    the profile is never empty.

    Args:
        tree: Built work tree
        builder: Receives enter/leave calls
        renderer: Optional host render hook

    Returns:
        Final running weight offset
    """
    root = tree.root
    if not root.children:
        root.name = NOTHING_MATCHED_NAME
        root.stats["weight"] = 1
    emitter = ProfileEmitter(builder, renderer)
    emitter.emit(root)
    return emitter.running_weight
