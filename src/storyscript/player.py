""" Plays a story script in the terminal. """

import sys
import argparse
import contextlib
import logging
from typing import Optional, Sequence, TextIO

from storyscript import config, graph, util
from storyscript.engine import StoryEngine, SourceAcquisitionError
from storyscript.interpreter import StepInterpreter, format_node
from storyscript.nodes import DialogueNode, CommandNode, ChoiceNode
from storyscript.presentation import interpolate, display_name, choice_options


def prompt_choice(node:ChoiceNode, stepper:StepInterpreter, fin:TextIO, fout:TextIO) -> Optional[str]:
    """ asks for one of the enabled options, returning its target or None if
    input runs out """

    options = choice_options(stepper.runtime, node)
    for i, option in enumerate(options):
        unavailable = "" if option.enabled else " (unavailable)"
        print(f'  {i+1}. {option.text}{unavailable}', file=fout)

    while True:
        print("> ", end="", file=fout, flush=True)
        line = fin.readline()
        if not line:
            return None
        line = line.strip()
        if not line.isdigit() or not 1 <= int(line) <= len(options):
            print(f'pick a number from 1 to {len(options)}', file=fout)
            continue
        option = options[int(line)-1]
        if not option.enabled:
            print("that option isn't available", file=fout)
            continue
        return option.target

def play(stepper:StepInterpreter, fin:TextIO=sys.stdin, fout:TextIO=sys.stdout, pause:bool=True) -> None:
    """ Runs an interactive session until the story ends or input runs out.

    With pause set we wait for enter after each line of dialogue. """

    runtime = stepper.runtime
    stepper.start()

    while True:
        node = stepper.step()
        if node is None:
            break

        if isinstance(node, DialogueNode):
            print(f'{display_name(runtime, node.character)}: {interpolate(runtime, node.text)}', file=fout)
            if pause and not fin.readline():
                stepper.stop()
                return
        elif isinstance(node, CommandNode):
            print(f'[{" ".join(x for x in (node.command, node.args) if x)}]', file=fout)
        elif isinstance(node, ChoiceNode):
            target = prompt_choice(node, stepper, fin, fout)
            if target is None:
                stepper.stop()
                return
            stepper.select_choice(target)

    print("THE END", file=fout)

def main(argv:Optional[Sequence[str]]=None) -> None:
    with contextlib.ExitStack() as context_stack:
        parser = argparse.ArgumentParser(description="plays a story script in the terminal")
        parser.add_argument("script", type=str,
                help="path to the story script, or an http(s) URL to fetch it from")
        parser.add_argument("--trace", action="store_true",
                help="run without interaction, always taking the first option of a choice")
        parser.add_argument("--graph", nargs="?", type=str, default=None,
                help="write the label graph as graphviz source to this file, \"-\" for stdout")
        parser.add_argument("--config", nargs="?", type=str, default=None,
                help="toml file overriding the built in configuration")
        parser.add_argument("--log-file", nargs="?", type=str, default=None,
                help="where to log, \"-\" for stderr. default from config")
        parser.add_argument("--debug", action="store_true",
                help="log at debug level")
        parser.add_argument("--pdb", action="store_true")

        args = parser.parse_args(argv)

        if args.config:
            config.load_config(args.config)

        log_file = args.log_file or config.Settings.Player.LOG_FILE
        log_level = logging.DEBUG if args.debug else logging.INFO
        log_format = "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
        if log_file == "-":
            logging.basicConfig(stream=sys.stderr, format=log_format, level=log_level)
        else:
            logging.basicConfig(format=log_format, filename=log_file, filemode="w", level=log_level)
        # send warnings to the logger
        logging.captureWarnings(True)

        if args.pdb:
            context_stack.enter_context(util.PDBManager())

        engine = StoryEngine()
        try:
            engine.load(args.script)
        except SourceAcquisitionError as e:
            logging.error(f'{e}')
            print(f'{e}', file=sys.stderr)
            sys.exit(1)

        if args.graph:
            assert engine.ast is not None
            source = graph.viz(engine.ast, engine.runtime.start_label).source
            if args.graph == "-":
                fout = sys.stdout
            else:
                fout = context_stack.enter_context(open(args.graph, "wt"))
            fout.write(source)
            return

        if args.trace:
            for node in engine.run():
                print(format_node(node))
        else:
            assert engine.stepper is not None
            play(engine.stepper)

        logging.info("done.")

if __name__ == "__main__":
    main()
