# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
End to end tests on real image files: Pillow reader, runner, config and CLI.
"""

import json
import os

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from pycaminit.camera_init import CameraInitRunner
from pycaminit.camera_init_cli import main
from pycaminit.config import CameraInitOptions, GroupCameraModel, load_yaml_config
from pycaminit.constants import kSFM_DATA_FILE
from pycaminit.exceptions import (
    ConfigurationError, EmptyInputError, UnknownSensorError)
from pycaminit.image_reader import ImageReader, kEXIF_IFD, kTAG_FOCAL_LENGTH
from pycaminit.intrinsics import CameraModelKind


def write_image(path, size=(64, 48), brand=None, model=None, exif_ifd=None):
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    image = Image.new('RGB', size, color=(128, 64, 32))
    if brand:
        exif = Image.Exif()
        exif[271] = brand
        exif[272] = model
        if exif_ifd:
            exif[kEXIF_IFD] = exif_ifd
        image.save(str(path), exif=exif)
    else:
        image.save(str(path))
    return str(path)


def load_sfm_data(output_dir):
    with open(os.path.join(str(output_dir), kSFM_DATA_FILE)) as f:
        return json.load(f)


class TestImageReader:
    """Tests for the Pillow based reader."""

    def test_header_and_exif(self, tmp_path):
        path = write_image(tmp_path / 'a.jpg', size=(80, 60),
                           brand='Canon', model='Canon EOS 5D')
        reader = ImageReader()

        assert reader.read_format(path) == 'JPEG'
        assert reader.read_header(path) == (80, 60)

        exif = reader.read_exif(path)
        assert exif.has_exif
        assert exif.brand == 'Canon'
        assert exif.model == 'Canon EOS 5D'
        assert exif.raw['Make'] == 'Canon'

    def test_no_exif(self, tmp_path):
        exif = ImageReader().read_exif(write_image(tmp_path / 'a.png'))
        assert not exif.has_exif
        assert exif.raw == {}

    def test_not_an_image(self, tmp_path):
        path = tmp_path / 'a.jpg'
        path.write_text('not an image')
        reader = ImageReader()

        assert reader.read_format(str(path)) is None
        assert reader.read_header(str(path)) is None
        assert not reader.read_exif(str(path)).has_exif

    def test_view_id_stable(self, tmp_path):
        path = write_image(tmp_path / 'a.jpg')
        other = write_image(tmp_path / 'b.jpg')
        reader = ImageReader()

        view_id = reader.compute_view_id(reader.read_exif(path), path)

        assert view_id == reader.compute_view_id(reader.read_exif(path), path)
        assert view_id != reader.compute_view_id(reader.read_exif(other), other)
        assert 0 <= view_id < 2 ** 31


class TestCameraInitOptions:
    """Tests for option validation."""

    def test_defaults(self):
        overrides = CameraInitOptions(image_directory='/images').validate()

        assert overrides.k_matrix == ''
        assert overrides.focal_length_px == -1.0
        assert overrides.camera_model is None

    def test_overrides(self):
        options = CameraInitOptions(image_directory='/images',
                                    default_intrinsics='1000;0;500;0;1000;375;0;0;1',
                                    default_camera_model='fisheye4',
                                    group_camera_model=2)

        overrides = options.validate()

        assert overrides.camera_model == CameraModelKind.FISHEYE4
        assert options.group_policy == GroupCameraModel.FOLDER

    @pytest.mark.parametrize('values', [
        {},
        {'image_directory': '/images', 'manifest_file': '/manifest.json'},
        {'image_directory': '/images', 'default_focal_length_pix': 1000.0,
         'default_intrinsics': '1000;0;500;0;1000;375;0;0;1'},
        {'image_directory': '/images', 'default_intrinsics': '1000;0;500'},
        {'image_directory': '/images', 'default_camera_model': 'fisheye9'},
        {'image_directory': '/images', 'group_camera_model': 3},
    ])
    def test_invalid(self, values):
        options = CameraInitOptions()
        options.update(values)

        with pytest.raises(ConfigurationError):
            options.validate()

    def test_yaml_config(self, tmp_path):
        config = tmp_path / 'config.yaml'
        config.write_text('image_directory: /images\n'
                          'default_sensor_width: 6.17\n'
                          'unknown_option: 1\n')

        options = load_yaml_config(str(config))

        assert options.image_directory == '/images'
        assert options.default_sensor_width == 6.17
        assert not hasattr(options, 'unknown_option')

    def test_yaml_config_not_a_mapping(self, tmp_path):
        config = tmp_path / 'config.yaml'
        config.write_text('- image_directory\n')

        with pytest.raises(ConfigurationError):
            load_yaml_config(str(config))


class TestCameraInitRunner:
    """Tests for the whole pipeline on real images."""

    def test_image_directory(self, tmp_path):
        images = tmp_path / 'images'
        write_image(images / 'a.jpg')
        write_image(images / 'b.png')
        output_dir = tmp_path / 'out'

        runner = CameraInitRunner(CameraInitOptions(image_directory=str(images),
                                                    output_dir=str(output_dir)))
        runner.run_all()

        sfm_data = load_sfm_data(output_dir)
        assert sfm_data['rootPath'] == str(images)
        assert len(sfm_data['views']) == 2
        # no metadata and no serial number, nothing shared
        assert len(sfm_data['intrinsics']) == 2
        assert sfm_data['rigs'] == {}
        intrinsic = next(iter(sfm_data['intrinsics'].values()))
        # no sensor width to convert the default focal length
        assert intrinsic['pxFocalLength'] == -1.0
        assert intrinsic['principalPoint'] == [32.0, 24.0]
        assert runner.report.nb_views_without_intrinsic == 0
        assert runner.report.nb_views_with_incomplete_intrinsic == 2
        assert len(runner.diagnostics.no_metadata_images) == 2

    def test_rig_manifest(self, tmp_path):
        for camera_id in range(2):
            for frame_id in range(3):
                write_image(tmp_path / 'rig' / f'cam{camera_id}' / f'{frame_id}.jpg')
        manifest = tmp_path / 'manifest.json'
        manifest.write_text(json.dumps({'resources': [[
            [str(tmp_path / 'rig' / 'cam0')], [str(tmp_path / 'rig' / 'cam1')]]]}))

        runner = CameraInitRunner(CameraInitOptions(manifest_file=str(manifest),
                                                    output_dir=str(tmp_path)))
        runner.run_all()

        sfm_data = load_sfm_data(tmp_path)
        assert sfm_data['rigs'] == {'0': {'nbSubPoses': 2}}
        assert len(sfm_data['views']) == 6
        assert {view['poseId'] for view in sfm_data['views'].values()} == {0, 1, 2}
        assert {view['subPoseId'] for view in sfm_data['views'].values()} == {0, 1}
        assert sorted(intrinsic['serialNumber']
                      for intrinsic in sfm_data['intrinsics'].values()) == [
            'no_metadata_rig_0_0', 'no_metadata_rig_0_1']

    def test_camera_sharing_metadata(self, tmp_path):
        """Images of a known camera share one intrinsic."""
        images = tmp_path / 'images'
        for name in ['a.jpg', 'b.jpg']:
            write_image(images / name, brand='Canon', model='Canon EOS 5D')
        database = tmp_path / 'cameraSensors.db'
        database.write_text('Canon;Canon EOS 5D;35.8\n')

        options = CameraInitOptions(image_directory=str(images),
                                    sensor_database=str(database),
                                    default_intrinsics='100;0;32;0;100;24;0;0;1')
        sfm_data = CameraInitRunner(options).run()

        # no serial number in the metadata, intrinsics are kept apart
        assert len(sfm_data.intrinsics) == 2
        for intrinsic in sfm_data.intrinsics.values():
            assert intrinsic.focal_length_px == 100.0
            assert intrinsic.sensor_width == 35.8

    def test_unknown_sensor(self, tmp_path):
        images = tmp_path / 'images'
        write_image(images / 'a.jpg', brand='Nikon', model='D850')

        runner = CameraInitRunner(CameraInitOptions(image_directory=str(images),
                                                    output_dir=str(tmp_path / 'out')))

        with pytest.raises(UnknownSensorError):
            runner.run_all()
        assert not os.path.exists(tmp_path / 'out' / kSFM_DATA_FILE)
        # fatal before grouping and the final report
        assert runner.report is None

    def test_zero_focal_length(self, tmp_path):
        """A 0/0 focal length is unknown and never written as NaN."""
        images = tmp_path / 'images'
        write_image(images / 'a.jpg', brand='Canon', model='Canon EOS 5D',
                    exif_ifd={kTAG_FOCAL_LENGTH: IFDRational(0, 0)})
        database = tmp_path / 'cameraSensors.db'
        database.write_text('Canon;Canon EOS 5D;35.8\n')
        output_dir = tmp_path / 'out'

        exif = ImageReader().read_exif(str(images / 'a.jpg'))
        assert exif.focal_length_mm == -1.0

        runner = CameraInitRunner(CameraInitOptions(image_directory=str(images),
                                                    sensor_database=str(database),
                                                    output_dir=str(output_dir)))
        sfm_data = runner.run_all()

        intrinsic = next(iter(sfm_data.intrinsics.values()))
        assert intrinsic.focal_length_mm == -1.0
        assert intrinsic.focal_length_px == -1.0
        assert runner.report.nb_views_with_incomplete_intrinsic == 1
        with open(output_dir / kSFM_DATA_FILE) as f:
            content = f.read()
        assert 'NaN' not in content
        assert json.loads(content)['intrinsics']['0']['pxFocalLength'] == -1.0

    def test_no_readable_image(self, tmp_path):
        images = tmp_path / 'images'
        os.makedirs(images)
        (images / 'broken.jpg').write_text('not an image')

        with pytest.raises(EmptyInputError):
            CameraInitRunner(CameraInitOptions(image_directory=str(images))).run()


class TestCli:
    """Tests for the command line entry point."""

    def test_success(self, tmp_path):
        images = tmp_path / 'images'
        write_image(images / 'a.jpg')
        output_dir = tmp_path / 'out'

        assert main(['-i', str(images), '-o', str(output_dir),
                     '--group_camera_model', '0']) == 0
        assert len(load_sfm_data(output_dir)['views']) == 1

    def test_config_file(self, tmp_path):
        images = tmp_path / 'images'
        write_image(images / 'a.jpg')
        config = tmp_path / 'config.yaml'
        config.write_text(f'image_directory: {images}\n'
                          f'output_dir: {tmp_path / "from_config"}\n')
        output_dir = tmp_path / 'from_cli'

        assert main(['--config', str(config), '-o', str(output_dir)]) == 0
        assert os.path.exists(output_dir / kSFM_DATA_FILE)
        assert not os.path.exists(tmp_path / 'from_config')

    def test_conflicting_inputs(self, tmp_path):
        manifest = tmp_path / 'manifest.json'
        manifest.write_text('{"resources": []}')

        assert main(['-i', str(tmp_path), '-j', str(manifest)]) == 1

    def test_missing_config_file(self, tmp_path):
        assert main(['--config', str(tmp_path / 'missing.yaml')]) == 1

    def test_fatal_error(self, tmp_path):
        assert main(['-i', str(tmp_path / 'missing')]) == 1
