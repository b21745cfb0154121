""" Label flow graph of a script, for looking at a story's structure. """

from typing import Iterator, Tuple, Sequence, Set

import graphviz # type: ignore

from storyscript import util
from storyscript.nodes import Node, ScriptAST, ChoiceNode, ConditionNode, JumpNode

# (target, label, conditional)
Edge = Tuple[str, str, bool]

CHOICE_LABEL_LENGTH = 24

def edges(nodes:Sequence[Node], conditional:bool=False) -> Iterator[Edge]:
    """ every jump and choice transition reachable in nodes, including
    inside condition bodies """
    for node in nodes:
        if isinstance(node, JumpNode):
            yield node.target, "", conditional
        elif isinstance(node, ChoiceNode):
            for choice in node.choices:
                label = util.elipsis(choice.text, CHOICE_LABEL_LENGTH)
                if choice.condition:
                    label = f'{label}\n[{choice.condition}]'
                yield choice.target, label, conditional or choice.condition is not None
        elif isinstance(node, ConditionNode):
            yield from edges(node.then_nodes, conditional=True)

def viz(ast:ScriptAST, start_label:str="Start") -> graphviz.Digraph:
    g = graphviz.Digraph("story", graph_attr={"rankdir": "TB"})

    missing:Set[str] = set()
    for name, label in ast.labels.items():
        g.node(name, label=f'{name}\n({len(label.nodes)} nodes)', shape="doublecircle" if name == start_label else "box")
        for target, edge_label, conditional in edges(label.nodes):
            if target not in ast.labels:
                missing.add(target)
            g.edge(name, target, label=edge_label, style="dashed" if conditional else "solid")

    for name in sorted(missing):
        g.node(name, label=name, shape="box", style="dotted")

    return g
