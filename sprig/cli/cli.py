import functools
import logging
import os
import stat
import click
from dataclasses import dataclass
from pathlib import PurePath
from sprig import *
from sprig.config import load_config, write_default_config
from sprig.index import Index, IndexEntry
from sprig.stores.file import FileObjectStore
from sprig.tree_helpers import walk_tree_sync, write_tree_sync

#print logs to console
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Command line to work with a sprig repository.
# It utilizes the 'click' library.

SPRIG_DIR = ".sprig"
DEFAULT_HEAD = "ref: refs/heads/main\n"

@dataclass
class RepoContext:
    verbose:bool
    work_dir:str

    def find_repo_root(self) -> str:
        """Walks up from the work directory until a directory containing .sprig is found"""
        current = os.path.abspath(self.work_dir)
        while True:
            if os.path.isdir(os.path.join(current, SPRIG_DIR)):
                return current
            parent = os.path.dirname(current)
            if parent == current:
                raise click.ClickException(
                    f"Not a sprig repository (or any of the parent directories): '{os.path.abspath(self.work_dir)}'.")
            current = parent

    def sprig_dir(self) -> str:
        return os.path.join(self.find_repo_root(), SPRIG_DIR)

    def open_store(self) -> FileObjectStore:
        sprig_dir = self.sprig_dir()
        config = load_config(os.path.join(sprig_dir, "config.toml"))
        return FileObjectStore(os.path.join(sprig_dir, "objects"), ZlibCodec(config.compression_level))

    def open_index(self) -> Index:
        index = Index(os.path.join(self.sprig_dir(), "index"))
        index.load()
        return index

def _sprig_errors(func):
    """Renders errors from the object store as click errors (exit code 1)"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (SprigError, ValueError) as e:
            raise click.ClickException(str(e)) from e
    return wrapper

def _parse_object_id_arg(object_id_str:str) -> ObjectId:
    if len(object_id_str) != OBJECT_ID_STR_LEN:
        raise click.BadParameter(f"need {OBJECT_ID_STR_LEN} hex characters, got {len(object_id_str)}.")
    if not is_object_id_str(object_id_str):
        raise click.BadParameter(f"'{object_id_str}' is not a hex object id.")
    return to_object_id(object_id_str)

def _decode_name(name:bytes) -> str:
    return name.decode('utf-8', errors='replace')

@click.group()
@click.pass_context
@click.option("--work-dir", "-d",
    help="Work directory. By default, uses the current directory. The repository is searched from here upwards.")
@click.option("--verbose", "-v", is_flag=True, help="Will print verbose messages.")
def cli(ctx:click.Context, verbose:bool, work_dir:str|None):
    if(work_dir is None):
        work_dir = os.getcwd()
    if(verbose):
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug(f"work dir: {work_dir}")
    if(not os.path.exists(work_dir)):
        raise click.ClickException(f"Work directory '{work_dir}' (absolute: '{os.path.abspath(work_dir)}') does not exist.")
    ctx.obj = RepoContext(verbose=verbose, work_dir=work_dir)

#===========================================================
# 'init' command
#===========================================================
@cli.command()
@click.pass_context
def init(ctx:click.Context):
    repo_ctx:RepoContext = ctx.obj
    sprig_dir = os.path.join(os.path.abspath(repo_ctx.work_dir), SPRIG_DIR)
    existed = os.path.isdir(sprig_dir)
    os.makedirs(os.path.join(sprig_dir, "objects"), exist_ok=True)
    os.makedirs(os.path.join(sprig_dir, "refs", "heads"), exist_ok=True)
    head_path = os.path.join(sprig_dir, "HEAD")
    if not os.path.exists(head_path):
        with open(head_path, "w") as f:
            f.write(DEFAULT_HEAD)
    config_path = os.path.join(sprig_dir, "config.toml")
    if not os.path.exists(config_path):
        write_default_config(config_path)
    if existed:
        click.echo(f"Reinitialized existing sprig repository in {sprig_dir}")
    else:
        click.echo(f"Initialized empty sprig repository in {sprig_dir}")

#===========================================================
# 'hash-object' command
#===========================================================
@cli.command("hash-object")
@click.pass_context
@click.option("--write", "-w", is_flag=True, help="Store the object in the object store.")
@click.option("--type", "-t", "object_type", default="blob", show_default=True,
    type=click.Choice(OBJECT_TYPES), help="Object type.")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@_sprig_errors
def hash_object(ctx:click.Context, write:bool, object_type:str, path:str):
    repo_ctx:RepoContext = ctx.obj
    with open(path, "rb") as f:
        content = f.read()
    framed = frame_object(object_type, content)
    if write:
        result = repo_ctx.open_store().put_if_absent_sync(framed)
        object_id = result.object_id
    else:
        object_id = get_object_id(framed)
    click.echo(to_object_id_str(object_id))

#===========================================================
# 'cat-file' command
#===========================================================
@cli.command("cat-file")
@click.pass_context
@click.option("-p", "print_payload", is_flag=True, help="Print the object content.")
@click.option("-t", "print_type", is_flag=True, help="Print the object type.")
@click.option("-s", "print_size", is_flag=True, help="Print the object size.")
@click.argument("object_id_str", metavar="OID")
@_sprig_errors
def cat_file(ctx:click.Context, print_payload:bool, print_type:bool, print_size:bool, object_id_str:str):
    repo_ctx:RepoContext = ctx.obj
    if [print_payload, print_type, print_size].count(True) != 1:
        raise click.UsageError("need exactly one of -p, -t or -s.")
    object_id = _parse_object_id_arg(object_id_str)
    result = repo_ctx.open_store().read_sync(object_id)
    if result is None:
        raise click.ClickException(f"Object '{object_id_str}' not found.")
    if print_type:
        click.echo(result.type)
    elif print_size:
        click.echo(str(result.size))
    else:
        # binary safe, tree payloads contain NULs
        stdout = click.get_binary_stream("stdout")
        stdout.write(result.content)
        stdout.flush()

#===========================================================
# 'ls-tree' command
#===========================================================
@cli.command("ls-tree")
@click.pass_context
@click.option("--name-only", is_flag=True, help="Only print the entry names.")
@click.option("--recursive", "-r", is_flag=True, help="Recurse into sub-trees.")
@click.argument("object_id_str", metavar="OID")
@_sprig_errors
def ls_tree(ctx:click.Context, name_only:bool, recursive:bool, object_id_str:str):
    repo_ctx:RepoContext = ctx.obj
    object_id = _parse_object_id_arg(object_id_str)
    store = repo_ctx.open_store()
    try:
        for path, entry in walk_tree_sync(store, object_id, recursive=recursive):
            if name_only:
                click.echo(_decode_name(path))
            else:
                click.echo(f"{entry.mode} {entry.kind.value} {to_object_id_str(entry.object_id)}\t{_decode_name(path)}")
    except KeyError as e:
        raise click.ClickException(e.args[0]) from e
    except TypeError as e:
        raise click.ClickException(str(e)) from e

#===========================================================
# 'add' command
#===========================================================
@cli.command()
@click.pass_context
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@_sprig_errors
def add(ctx:click.Context, paths:tuple[str, ...]):
    repo_ctx:RepoContext = ctx.obj
    repo_root = repo_ctx.find_repo_root()
    store = repo_ctx.open_store()
    index = repo_ctx.open_index()
    for path in paths:
        for file_path in _iter_files(os.path.abspath(path)):
            rel_path = os.path.relpath(file_path, repo_root)
            if rel_path == os.pardir or rel_path.startswith(os.pardir + os.sep):
                raise click.ClickException(f"'{path}' is outside the repository at '{repo_root}'.")
            with open(file_path, "rb") as f:
                result = store.put_if_absent_sync(blob_to_bytes(f.read()))
            index.upsert(IndexEntry(PurePath(rel_path).as_posix(), _file_mode(file_path), result.object_id))
            logger.debug(f"Staged '{rel_path}' as {result.object_id.hex()}.")
    index.flush()

def _iter_files(path:str):
    if os.path.isfile(path):
        yield path
        return
    for root, dirs, files in os.walk(path):
        dirs[:] = sorted(d for d in dirs if d != SPRIG_DIR)
        for file in sorted(files):
            yield os.path.join(root, file)

def _file_mode(path:str) -> str:
    if os.stat(path).st_mode & stat.S_IXUSR:
        return MODE_EXECUTABLE
    return MODE_FILE

#===========================================================
# 'write-tree' command
#===========================================================
@cli.command("write-tree")
@click.pass_context
@_sprig_errors
def write_tree(ctx:click.Context):
    repo_ctx:RepoContext = ctx.obj
    index = repo_ctx.open_index()
    tree_id = write_tree_sync(repo_ctx.open_store(), index.entries())
    click.echo(to_object_id_str(tree_id))

#===========================================================
# 'list-objects' command
#===========================================================
@cli.command("list-objects")
@click.pass_context
@_sprig_errors
def list_objects(ctx:click.Context):
    repo_ctx:RepoContext = ctx.obj
    for object_id_str in sorted(to_object_id_str(object_id) for object_id in repo_ctx.open_store().enumerate_sync()):
        click.echo(object_id_str)

if __name__ == '__main__':
    cli(None)
