# lfpreview

A previewer for the `lf` terminal file manager. Given a file and the size of
the preview pane, it prints:

- for images, audio and video: a thumbnail drawn in the terminal with `chafa`,
  followed by an information section read with `exiftool`. When the two
  together are taller than the pane, the thumbnail is drawn again in the rows
  left over, or dropped when fewer than two rows remain;
- for other files: the file's text, word-wrapped and then character-wrapped
  to the pane width (long lines are broken with `⏎`).

The kind of a file is decided by its extension.

Rendered thumbnails and metadata (as JSON) are cached under
`$XDG_CACHE_HOME/lf-preview` (or `~/.cache/lf-preview`), keyed by a sampled
hash of the file's contents together with a digest of its name.

## Installation

```
pip install .
```

These programs are run when a preview needs them:

- `chafa` draws every thumbnail;
- `exiftool` reads the information section;
- `inkscape` renders SVG and SVGZ images;
- `ffmpegthumbnailer` grabs a frame from videos.

Audio thumbnails are the cover art embedded in ID3 (MP3), FLAC or MP4/M4A
files; an audio file without a picture is shown with its information only.
AVIF and JPEG XL images are decoded with Pillow and handed to `chafa` as PNG;
an image Pillow cannot decode is shown without a thumbnail.

## Usage

In your `lfrc`:

```
set previewer lfpreview
```

or run it directly:

```
lfpreview FILE [WIDTH] [HEIGHT]
lfpreview --no_info FILE WIDTH HEIGHT
```

`WIDTH` and `HEIGHT` are the pane size as `lf` passes it; the text width used
is two less than `WIDTH`. When either is missing or too small, the terminal's
size is used instead. `-n` / `--no_info` leaves out the information section.

Images larger than 100 MB and non-media files larger than 0.1 MB are not
previewed. The text of a file inside a folder named `.ssh` or `ssh` is never
shown.

On failure (a missing file, a converter that fails, no `exiftool`) the
command prints `lfpreview: <reason>` to standard error and exits with
status 1.

## Environment

| Variable | Effect |
| --- | --- |
| `LF_CHAFA_PREVIEW_FORMAT` | chafa output format (`sixel`, `kitty`, …) |
| `LF_CHAFA_PREVIEW_DITHER` | chafa dither mode |
| `LF_CHAFA_PREVIEW_COLORS` | chafa colour mode (default `full`) |
| `FONT_RATIO` | font ratio passed to chafa (default `1/2`; `1/1` for sixel, `100/225` for kitty) |
| `LF_CHAFA_PREVIEW_FORMAT_OVERRIDE_KITTY_RATIO` | `1` keeps the `1/2` default for kitty |
| `LF_CHAFA_PREVIEW_DISABLE_WORDWRAP` | `1` prints text files unwrapped |
| `LF_CHAFA_PREVIEW_DISABLE_COMPAT` | non-zero passes AVIF and JPEG XL straight to chafa |
| `LF_CHAFA_PREVIEW_PRINT_OUTPUT` | `0` builds the preview without printing it |
| `LF_CHAFA_PREVIEW_DEBUG_TIME` | non-zero appends the total time and the media type |
| `LF_CHAFA_PREVIEW_DEBUG_HW_TEST` | `1` prints a width/height test pattern instead of a preview |
| `LF_CHAFA_PREVIEW_DEBUG_LEN_TEST` | `1` prints a wide-character width check instead of a preview |
| `XDG_CACHE_HOME` | base of the cache directory |

## Library use

```python
from lfpreview.textfmt import char_wrap, word_wrap
from lfpreview.hashing import file_key
from lfpreview.config import load_settings
from lfpreview.cli import build_preview

print(char_wrap(word_wrap(open("notes.txt").read(), 40), 40))
print(file_key("picture.png", 200))

settings = load_settings(["notes.txt", "42", "20"], environ={})
print(build_preview(settings))
```

Other entry points: `lfpreview.exif.format_exif` and `info_section` for the
information section, `lfpreview.preview.render_thumbnail` and
`image_with_info` for thumbnails, `lfpreview.music.embedded_picture` for
cover art, and `lfpreview.external.Converter` for `inkscape` and
`ffmpegthumbnailer`.

## Limits

The package draws nothing itself: without `chafa` there are no thumbnails,
and without `exiftool` media previews fail. It has no profiling switches and
no option to print the raw metadata.

## Development

```
pip install -e ".[test]"
pytest
```