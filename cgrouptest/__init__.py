"""
All modules relating to the container cgroup test sub-framework are in this
namespace

Through subclassing ``cgrouptest.subtest.Subtest()``, `subtest modules`_,
also have access to this namespace.  It is available using the standard
python dotted import syntax.  For example, ``from cgrouptest import output``.
"""
