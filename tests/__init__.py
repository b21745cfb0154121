from typing import List, Optional, Tuple

from storyscript import parser
from storyscript.diagnostics import DiagnosticSink
from storyscript.interpreter import StepInterpreter
from storyscript.nodes import Node
from storyscript.runtime import Runtime

DEMO_SCRIPT = """// demo story
@char MC
    name: "Player"
    color: "#4A90E2"
    sprite: 'mc_{expression}.png'

@char Sayori
    name: Sayori

== Start ==
scene school_hallway
~ affection = 0
Sayori "Good morning, {MC.name}!"
* Wave back -> Wave
* [affection > 5] Hug her -> Hug

== Wave ==
~ affection += 5
{ affection >= 5 }
Sayori "You waved!"
-> Ending

== Hug ==
Sayori "Whoa!"

== Ending ==
Sayori "See you later.
This goes on."
"""

def story(text:str, sink:Optional[DiagnosticSink]=None, **kwargs) -> Tuple[Runtime, StepInterpreter]:
    """ parses text and sets up a fresh runtime and step interpreter for it """
    runtime = Runtime(sink=sink)
    return runtime, StepInterpreter(runtime, parser.loads(text, sink=sink), **kwargs)

def drain(stepper:StepInterpreter, limit:int=1000) -> List[Node]:
    """ steps until the story is done, failing on any choice """
    nodes = []
    for _ in range(limit):
        node = stepper.step()
        if node is None:
            return nodes
        nodes.append(node)
    raise AssertionError(f'story did not finish in {limit} steps')
