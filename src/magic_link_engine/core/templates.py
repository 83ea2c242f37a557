from jinja2 import Environment, PackageLoader, select_autoescape

# Templates live in the package's 'templates' folder
jinja_env = Environment(
    loader=PackageLoader("magic_link_engine", "templates"),
    autoescape=select_autoescape(["html", "xml"]),
)
